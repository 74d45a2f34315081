"""Data models for theme assets and sync events."""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class TextContent:
    """Asset content carried as a plain-text ``value``."""

    value: str

    def to_payload(self) -> dict[str, str]:
        return {"value": self.value}


@dataclass(frozen=True)
class BinaryContent:
    """Asset content carried as a base64 ``attachment``."""

    data: bytes

    def to_payload(self) -> dict[str, str]:
        return {"attachment": base64.b64encode(self.data).decode("ascii")}


AssetContent = Union[TextContent, BinaryContent]


def content_from_payload(asset: dict[str, Any]) -> Optional[AssetContent]:
    """Build asset content from the ``asset`` object of an API response.

    Text values have their line endings normalized to ``\\n``. Attachments
    are base64-decoded into raw bytes. Returns None when the object carries
    neither form.

    Raises:
        TypeError: If the value is not a string
        binascii.Error: If the attachment is not valid base64
    """
    value = asset.get("value")
    if value is not None:
        if not isinstance(value, str):
            raise TypeError(f"asset value is {type(value).__name__}, not str")
        return TextContent(value.replace("\r", ""))
    attachment = asset.get("attachment")
    if attachment is not None:
        return BinaryContent(base64.b64decode(attachment))
    return None


@dataclass
class AssetOpResult:
    """Outcome of a single remote asset operation."""

    key: str
    """Asset key the operation was performed on"""

    success: bool
    """Whether the operation completed successfully"""

    status_code: Optional[int] = None
    """HTTP status, None when no remote call was made"""

    request_id: Optional[str] = None
    """Value of the X-Request-Id response header, if any"""

    error_detail: Optional[str] = None
    """Best-effort error message for failed operations"""


@dataclass
class FetchedAsset:
    """Result of fetching a single asset."""

    result: AssetOpResult
    content: Optional[AssetContent] = None


class ChangeKind(str, Enum):
    """Kinds of local file-system change."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """A single file-system change, keyed by asset key."""

    key: str
    kind: ChangeKind
