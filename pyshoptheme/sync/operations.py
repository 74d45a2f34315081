"""Local file operations for theme assets."""

import logging
from pathlib import Path

from ..models import AssetContent, BinaryContent, TextContent
from .classifier import is_binary_content

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Reads and writes asset files under a theme root."""

    def __init__(self, root: Path):
        """Initialize the store.

        Args:
            root: Theme root directory; asset keys are relative to it
        """
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / key

    def read(self, key: str) -> AssetContent:
        """Read a local asset and classify it as text or binary.

        Text that is not valid UTF-8 is sent as binary.

        Raises:
            OSError: If the file cannot be read
        """
        data = self.path_for(key).read_bytes()
        if is_binary_content(key, data):
            return BinaryContent(data)
        try:
            return TextContent(data.decode("utf-8"))
        except UnicodeDecodeError:
            logger.debug(f"{key} is not valid UTF-8, sending as binary")
            return BinaryContent(data)

    def write(self, key: str, content: AssetContent) -> Path:
        """Write asset content, creating parent directories as needed.

        Text is written with ``\\n`` line endings; binary data is written
        byte for byte.

        Raises:
            OSError: If the file cannot be written
        """
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, TextContent):
            path.write_bytes(content.value.replace("\r", "").encode("utf-8"))
        else:
            path.write_bytes(content.data)
        return path
