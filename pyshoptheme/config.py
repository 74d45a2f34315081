"""Configuration loading for theme stores."""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import ThemeConfigError
from .sync.classifier import FilterPolicy
from .utils import CONFIG_FILE_NAME

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "development"

REQUIRED_KEYS = ("api_key", "password", "store")


class ThemeConfig:
    """Store configuration for one environment.

    The configuration file is YAML. A ``default`` section, if present, is
    the base configuration; otherwise the whole document is. A section
    named after the environment is merged over the base.

    Examples:
        >>> cfg = ThemeConfig.load(Path("config.yml"), environment="production")
        >>> cfg.theme_id
        '1234'
    """

    def __init__(
        self, values: Optional[dict[str, Any]] = None, environment: str = ""
    ):
        self.values: dict[str, Any] = dict(values or {})
        self.environment = environment or DEFAULT_ENVIRONMENT

    @classmethod
    def load(
        cls,
        path: Union[str, Path] = CONFIG_FILE_NAME,
        environment: str = DEFAULT_ENVIRONMENT,
    ) -> "ThemeConfig":
        """Load configuration for an environment from a YAML file.

        Args:
            path: Path to the configuration file
            environment: Environment section to merge over the base

        Returns:
            ThemeConfig instance (empty if the file does not exist)

        Raises:
            ThemeConfigError: If the file is not valid YAML or not a mapping
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"{path} does not exist!")
            return cls({}, environment)

        try:
            document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ThemeConfigError(f"Could not parse {path}: {e}") from e

        if not isinstance(document, dict):
            raise ThemeConfigError(f"{path} must contain a mapping")

        base = document.get("default") or document
        values = dict(base)
        section = document.get(environment)
        if isinstance(section, dict):
            values.update(section)
        return cls(values, environment)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.values.get(key)

    @property
    def theme_id(self) -> Optional[str]:
        theme_id = self.values.get("theme_id")
        return str(theme_id) if theme_id not in (None, "") else None

    @property
    def shop_theme_url(self) -> str:
        """Storefront URL, previewing the configured theme if any."""
        url = f"https://{self.values.get('store', '')}"
        theme_id = self.theme_id
        if theme_id and theme_id.isdigit() and int(theme_id) > 0:
            url += f"?preview_theme_id={theme_id}"
        return url

    def require_credentials(self) -> None:
        """Ensure the values needed to reach the store are present.

        Raises:
            ThemeConfigError: Naming every missing key
        """
        missing = [key for key in REQUIRED_KEYS if not self.values.get(key)]
        if missing:
            raise ThemeConfigError(
                f"Missing configuration for environment '{self.environment}': "
                + ", ".join(missing)
            )

    def filter_policy(self) -> FilterPolicy:
        """Build the path filter policy from ``whitelist_files``/``ignore_files``."""
        return FilterPolicy.from_patterns(
            whitelist=self.values.get("whitelist_files") or [],
            ignore=self.values.get("ignore_files") or [],
        )


def save_config(path: Union[str, Path], values: dict[str, Any]) -> Path:
    """Write a new configuration file.

    Args:
        path: Destination path
        values: Configuration values (None values are kept as YAML nulls)

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.write_text(
        yaml.safe_dump(values, default_flow_style=False), encoding="utf-8"
    )
    return path
