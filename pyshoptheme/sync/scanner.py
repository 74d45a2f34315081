"""Directory scanning for local theme assets."""

import logging
from pathlib import Path
from typing import Optional

from ..utils import CONFIG_FILE_NAME
from .classifier import FilterPolicy, is_ignored, is_whitelisted

logger = logging.getLogger(__name__)


class AssetScanner:
    """Lists the local files of a theme that are eligible for sync.

    A file is kept when its key matches the whitelist and no ignore
    pattern. The configuration file is never listed.

    Examples:
        >>> scanner = AssetScanner(FilterPolicy(ignore_patterns=(r"\\.scss$",)))
        >>> keys = scanner.scan(Path("/themes/dawn"))
    """

    def __init__(self, policy: Optional[FilterPolicy] = None):
        self.policy = policy or FilterPolicy()

    def accepts(self, key: str) -> bool:
        """Check a key against the policy."""
        if key == CONFIG_FILE_NAME:
            return False
        return is_whitelisted(key, self.policy) and not is_ignored(key, self.policy)

    def scan(self, root: Path) -> list[str]:
        """Recursively scan a theme root.

        Args:
            root: Theme root directory

        Returns:
            Sorted list of asset keys (forward slashes on all platforms)
        """
        root = Path(root)
        return sorted(key for key in self._walk(root, root) if self.accepts(key))

    def _walk(self, directory: Path, root: Path) -> list[str]:
        keys: list[str] = []
        try:
            for item in directory.iterdir():
                if item.is_file():
                    keys.append(item.relative_to(root).as_posix())
                elif item.is_dir():
                    keys.extend(self._walk(item, root))
        except PermissionError as e:
            logger.warning(f"Permission denied: {e}")
        return keys


def enumerate_local_assets(
    root: Path, policy: Optional[FilterPolicy] = None
) -> list[str]:
    """List the local asset keys under ``root`` that pass ``policy``."""
    return AssetScanner(policy).scan(root)
