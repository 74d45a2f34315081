"""Exception hierarchy for pyshoptheme."""

from typing import Optional


class ShopifyThemeError(Exception):
    """Base exception for all pyshoptheme errors."""


class ThemeAPIError(ShopifyThemeError):
    """A remote call failed in a way that affects the whole command."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.request_id = request_id


class ThemeAuthenticationError(ThemeAPIError):
    """The store rejected the credentials (401/403). Aborts the run."""


class ThemeNetworkError(ThemeAPIError):
    """Transport failure that persisted after all retries."""


class ThemeInvalidResponseError(ThemeAPIError):
    """The response body was not the JSON document the API promises."""


class ThemeConfigError(ShopifyThemeError):
    """Configuration is missing or invalid."""


class InvalidAssetPathError(ShopifyThemeError):
    """An asset key lies outside the directories a theme may contain."""

    def __init__(self, key: str, valid_directories: tuple[str, ...]):
        self.key = key
        self.valid_directories = valid_directories
        super().__init__(
            f"'{key}' is not in a valid file for theme uploads. "
            "Files need to be in one of the following subdirectories: "
            + ", ".join(valid_directories)
        )


class UnknownChangeKindError(ShopifyThemeError):
    """A change event carried a kind the dispatcher does not handle."""
