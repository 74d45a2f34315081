"""Classification of theme assets: text vs binary, valid paths, filters."""

import mimetypes
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Optional

from ..exceptions import ThemeConfigError
from ..utils import DEFAULT_WHITELIST

# Extensions whose MIME type is unknown or misleading to the standard table.
# The value is True when the extension holds text.
EXTENSION_TEXT_OVERRIDES: dict[str, bool] = {
    ".liquid": True,
    ".json": True,
    ".map": True,
    ".svg": True,
    ".svgz": True,
    ".js": True,
    ".css": True,
    ".scss": True,
    ".eot": False,
    ".woff": False,
    ".woff2": False,
}

# Non-"text/*" MIME types that still carry text
TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/javascript",
        "application/x-javascript",
        "application/xml",
        "application/x-sh",
        "image/svg+xml",
    }
)

# Fraction of non-printable bytes above which data counts as binary
BINARY_THRESHOLD: float = 0.3

_PRINTABLE = frozenset(range(0x20, 0x7F)) | {ord("\r"), ord("\n")}


def compile_patterns(patterns: Iterable[str]) -> tuple[re.Pattern, ...]:
    """Compile filter patterns.

    Raises:
        ThemeConfigError: If a pattern is not a valid regular expression
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ThemeConfigError(f"Invalid pattern {pattern!r}: {e}") from e
    return tuple(compiled)


@dataclass(frozen=True)
class FilterPolicy:
    """Inclusion/exclusion policy for asset keys.

    Patterns are regular expressions matched anywhere in the key
    (unanchored), so a plain string such as ``"layout/"`` acts as a
    substring test.
    """

    whitelist_patterns: tuple[str, ...] = ()
    ignore_patterns: tuple[str, ...] = ()
    whitelist_regexes: tuple[re.Pattern, ...] = field(
        default=(), init=False, repr=False, compare=False
    )
    ignore_regexes: tuple[re.Pattern, ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        patterns = tuple(dict.fromkeys(DEFAULT_WHITELIST + self.whitelist_patterns))
        object.__setattr__(self, "whitelist_regexes", compile_patterns(patterns))
        object.__setattr__(
            self, "ignore_regexes", compile_patterns(self.ignore_patterns)
        )

    @classmethod
    def from_patterns(
        cls,
        whitelist: Iterable[Optional[str]] = (),
        ignore: Iterable[Optional[str]] = (),
    ) -> "FilterPolicy":
        """Build a policy, dropping empty entries."""
        return cls(
            whitelist_patterns=tuple(str(p) for p in whitelist if p),
            ignore_patterns=tuple(str(p) for p in ignore if p),
        )


def is_binary_data(data: bytes) -> bool:
    """Guess whether raw bytes are binary.

    Data is binary if it contains a NUL byte or if more than 30% of its
    bytes fall outside printable ASCII plus CR/LF. Empty data is text.

    Examples:
        >>> is_binary_data(b"<h1>Hi</h1>\\r\\n")
        False
        >>> is_binary_data(b"GIF89a\\x00\\x01")
        True
    """
    if not data:
        return False
    if b"\x00" in data:
        return True
    non_printable = sum(1 for byte in data if byte not in _PRINTABLE)
    return non_printable / len(data) > BINARY_THRESHOLD


def is_text_extension(key: str) -> Optional[bool]:
    """Classify a key by its extension.

    Returns:
        True for text types, False for binary types, None when unknown
    """
    suffix = PurePosixPath(key).suffix.lower()
    if suffix in EXTENSION_TEXT_OVERRIDES:
        return EXTENSION_TEXT_OVERRIDES[suffix]

    mime_type, _ = mimetypes.guess_type(key, strict=False)
    if mime_type is None:
        return None
    return mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES


def is_binary_content(key: str, data: bytes) -> bool:
    """Decide whether an asset must be sent as a binary attachment.

    The extension decides when it is known; otherwise the bytes are
    inspected with :func:`is_binary_data`.

    Args:
        key: Asset key (used for its extension)
        data: Raw file content
    """
    is_text = is_text_extension(key)
    if is_text is None:
        return is_binary_data(data)
    return not is_text


def is_valid_upload_path(key: str) -> bool:
    """Check that a key's first segment is one of the theme directories.

    Keys with ``..`` segments are rejected so that no file is read or
    written outside the theme root.

    Examples:
        >>> is_valid_upload_path("templates/index.liquid")
        True
        >>> is_valid_upload_path("secrets/private.txt")
        False
    """
    parts = key.split("/")
    if ".." in parts:
        return False
    return parts[0] + "/" in DEFAULT_WHITELIST


def is_ignored(key: str, policy: FilterPolicy) -> bool:
    """True if the key matches any ignore pattern."""
    return any(pattern.search(key) for pattern in policy.ignore_regexes)


def is_whitelisted(key: str, policy: FilterPolicy) -> bool:
    """True if the key matches a default directory or a whitelist pattern."""
    return any(pattern.search(key) for pattern in policy.whitelist_regexes)
