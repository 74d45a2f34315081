"""CLI interface for PyShopTheme."""

import logging
import platform
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .api import ShopifyThemeClient
from .budget import BudgetTracker
from .config import DEFAULT_ENVIRONMENT, ThemeConfig, save_config
from .exceptions import ShopifyThemeError, ThemeAuthenticationError
from .output import OutputFormatter
from .sync import ChangeWatcher, SyncDispatcher, enumerate_local_assets
from .sync.classifier import compile_patterns
from .utils import CONFIG_FILE_NAME

logger = logging.getLogger(__name__)

STACK_PACKAGES = ("httpx", "click", "rich", "watchdog", "PyYAML")


def _load_config(ctx: Any) -> ThemeConfig:
    """Load (once) the configuration selected by the global options."""
    if ctx.obj.get("config") is None:
        ctx.obj["config"] = ThemeConfig.load(
            ctx.obj["config_path"], environment=ctx.obj["environment"]
        )
    config: ThemeConfig = ctx.obj["config"]
    return config


def _build_client(config: ThemeConfig) -> ShopifyThemeClient:
    config.require_credentials()
    return ShopifyThemeClient(
        store=config["store"],
        api_key=config["api_key"],
        password=config["password"],
        theme_id=config.theme_id,
        budget=BudgetTracker(),
    )


def _build_dispatcher(ctx: Any) -> tuple[SyncDispatcher, ThemeConfig]:
    config = _load_config(ctx)
    client = _build_client(config)
    return SyncDispatcher(client, Path.cwd(), ctx.obj["out"]), config


@click.group()
@click.option(
    "--environment",
    "-e",
    default=DEFAULT_ENVIRONMENT,
    show_default=True,
    help="Which config environment to use",
)
@click.option(
    "--config-path",
    "-c",
    default=CONFIG_FILE_NAME,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Path to a configuration file",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    environment: str,
    config_path: str,
    quiet: bool,
    verbose: bool,
) -> None:
    """PyShopTheme - sync a local theme directory with a store's theme."""
    ctx.ensure_object(dict)
    ctx.obj["environment"] = environment
    ctx.obj["config_path"] = config_path
    ctx.obj["config"] = None
    ctx.obj["out"] = OutputFormatter(quiet=quiet, environment=environment)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyshoptheme").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.pass_context
def check(ctx: Any) -> None:
    """Check the configuration against the store."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        config = _load_config(ctx)
        client = _build_client(config)
        out.info(f"Checking config for {config['store']}")
        ok = client.check_config()
    except ThemeAuthenticationError as e:
        logger.debug(f"Check failed: {e}")
        ok = False
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    if ok:
        out.success("Configuration [OK]")
    else:
        out.error("Configuration [FAIL]")
        ctx.exit(1)


@main.command()
@click.argument("api_key")
@click.argument("password")
@click.argument("store")
@click.argument("theme_id", required=False)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config")
@click.pass_context
def configure(
    ctx: Any,
    api_key: str,
    password: str,
    store: str,
    theme_id: Optional[str],
    force: bool,
) -> None:
    """Generate a config file for the store to connect to."""
    out: OutputFormatter = ctx.obj["out"]
    path = Path(ctx.obj["config_path"])

    if path.exists() and not force:
        if not click.confirm(f"{path} already exists. Overwrite?", default=False):
            out.info("Aborted.")
            return

    save_config(
        path,
        {
            "api_key": api_key,
            "password": password,
            "store": store,
            "theme_id": theme_id,
        },
    )
    out.status("saving", f"configuration to {path}")


@main.command()
@click.argument("keys", nargs=-1)
@click.option("--exclude", help="Skip assets whose key matches this regex")
@click.pass_context
def download(ctx: Any, keys: tuple[str, ...], exclude: Optional[str]) -> None:
    """Download theme assets from the store (all of them if no KEYS)."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        dispatcher, _ = _build_dispatcher(ctx)
        assets = list(keys) or dispatcher.client.list_assets()
        if exclude:
            (pattern,) = compile_patterns([exclude])
            assets = [asset for asset in assets if not pattern.search(asset)]
        results = dispatcher.download_many(assets)
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    dispatcher.display_summary(results)


@main.command()
@click.argument("keys", nargs=-1)
@click.pass_context
def upload(ctx: Any, keys: tuple[str, ...]) -> None:
    """Upload theme assets to the store (all local assets if no KEYS)."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        dispatcher, config = _build_dispatcher(ctx)
        assets = list(keys) or enumerate_local_assets(
            Path.cwd(), config.filter_policy()
        )
        results = dispatcher.upload_many(assets)
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    dispatcher.display_summary(results)


@main.command()
@click.argument("keys", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def replace(ctx: Any, keys: tuple[str, ...], yes: bool) -> None:
    """Completely replace the store's theme assets with the local ones.

    Remote assets that do not exist locally are deleted (unless ignored),
    then every local asset is uploaded. With KEYS, only those assets are
    removed and uploaded again.
    """
    out: OutputFormatter = ctx.obj["out"]

    out.warning(
        "Are you sure you want to completely replace your shop theme assets? "
        "This is not undoable."
    )
    if not yes and not click.confirm("Continue?", default=False):
        out.info("Aborted.")
        return

    try:
        dispatcher, config = _build_dispatcher(ctx)
        policy = config.filter_policy()
        if keys:
            upload_keys = list(keys)
            delete_keys = list(keys)
        else:
            upload_keys = enumerate_local_assets(Path.cwd(), policy)
            local = set(upload_keys)
            delete_keys = [
                key for key in dispatcher.client.list_assets() if key not in local
            ]
        results = dispatcher.replace(upload_keys, delete_keys, policy)
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    dispatcher.display_summary(results)


@main.command()
@click.argument("keys", nargs=-1, required=True)
@click.pass_context
def remove(ctx: Any, keys: tuple[str, ...]) -> None:
    """Remove theme assets from the store."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        dispatcher, _ = _build_dispatcher(ctx)
        results = dispatcher.remove_many(keys)
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    dispatcher.display_summary(results)


@main.command()
@click.option(
    "--keep-files",
    is_flag=True,
    help="Never delete remote assets when local files are deleted",
)
@click.pass_context
def watch(ctx: Any, keep_files: bool) -> None:
    """Upload and delete individual theme assets as they change."""
    out: OutputFormatter = ctx.obj["out"]
    root = Path.cwd()

    try:
        dispatcher, config = _build_dispatcher(ctx)
        watcher = ChangeWatcher(root, config.filter_policy())
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    out.info(f"Watching {root} ({ctx.obj['environment']})")
    if keep_files:
        out.info("Remote assets will not be deleted")

    try:
        dispatcher.run_watch(watcher, keep_files=keep_files)
    except KeyboardInterrupt:
        watcher.stop()
        out.info("Stopped watching.")
    except ShopifyThemeError as e:
        watcher.stop()
        out.error(str(e))
        ctx.exit(1)


@main.command(name="open")
@click.pass_context
def open_store(ctx: Any) -> None:
    """Open the store's theme preview in the browser."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        config = _load_config(ctx)
    except ShopifyThemeError as e:
        out.error(str(e))
        ctx.exit(1)

    if not config["store"]:
        out.error("No store configured.")
        ctx.exit(1)

    click.launch(config.shop_theme_url)
    out.success("Done.")


@main.command()
def systeminfo() -> None:
    """Print system and library information for bug reports."""
    click.echo(f"Python: v{platform.python_version()}")
    click.echo(f"Operating System: {platform.platform()}")
    click.echo(f"pyshoptheme: v{__version__}")
    for package in STACK_PACKAGES:
        try:
            click.echo(f"{package}: v{version(package)}")
        except PackageNotFoundError:
            click.echo(f"{package}: not installed")


if __name__ == "__main__":
    main()
