"""PyShopTheme - keep a local theme directory in sync with a store's theme."""

from .api import ShopifyThemeClient
from .budget import ApiBudget, BudgetTracker
from .exceptions import (
    InvalidAssetPathError,
    ShopifyThemeError,
    ThemeAPIError,
    ThemeAuthenticationError,
    ThemeConfigError,
    ThemeInvalidResponseError,
    ThemeNetworkError,
    UnknownChangeKindError,
)
from .models import (
    AssetOpResult,
    BinaryContent,
    ChangeEvent,
    ChangeKind,
    FetchedAsset,
    TextContent,
)

__version__ = "0.4.0"

__all__ = [
    "ShopifyThemeClient",
    "ApiBudget",
    "BudgetTracker",
    "AssetOpResult",
    "BinaryContent",
    "ChangeEvent",
    "ChangeKind",
    "FetchedAsset",
    "TextContent",
    "InvalidAssetPathError",
    "ShopifyThemeError",
    "ThemeAPIError",
    "ThemeAuthenticationError",
    "ThemeConfigError",
    "ThemeInvalidResponseError",
    "ThemeNetworkError",
    "UnknownChangeKindError",
]
