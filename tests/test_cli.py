"""Unit tests for the theme CLI commands."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import httpx
import pytest
import yaml
from click.testing import CliRunner

from pyshoptheme.api import ShopifyThemeClient
from pyshoptheme.cli import main
from pyshoptheme.models import ChangeEvent, ChangeKind

CONFIG = """\
default:
  api_key: key
  password: secret
  store: example.myshopify.com
  theme_id: 1234
  ignore_files:
    - settings_data
production:
  store: live.myshopify.com
  theme_id: 99
"""


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def store_transport(fake_store):
    """Route every client the CLI builds to the in-memory store."""

    def build(**kwargs):
        return ShopifyThemeClient(
            **kwargs, retry_delay=0, transport=httpx.MockTransport(fake_store.handler)
        )

    with patch("pyshoptheme.cli.ShopifyThemeClient", side_effect=build) as mock:
        yield mock


def write_theme(files: dict[str, str]) -> None:
    Path("config.yml").write_text(CONFIG)
    for key, text in files.items():
        path = Path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)


def put_keys(fake_store) -> list[str]:
    return [
        json.loads(r.content)["asset"]["key"]
        for r in fake_store.requests
        if r.method == "PUT"
    ]


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        """Help lists every command."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "PyShopTheme" in result.output
        for command in (
            "check",
            "configure",
            "download",
            "upload",
            "replace",
            "remove",
            "watch",
            "open",
            "systeminfo",
        ):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.4.0" in result.output

    def test_systeminfo(self, runner):
        result = runner.invoke(main, ["systeminfo"])
        assert result.exit_code == 0
        assert "Python: v" in result.output
        assert "httpx:" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_check_ok(self, runner, store_transport):
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["check"])
        assert result.exit_code == 0
        assert "Configuration [OK]" in result.output

    def test_check_rejected_credentials(self, runner, store_transport, fake_store):
        fake_store.status_override["GET"] = 401
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["check"])
        assert result.exit_code == 1
        assert "Configuration [FAIL]" in result.output

    def test_check_without_config(self, runner, store_transport):
        """A missing config file leaves the credentials unset."""
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["check"])
        assert result.exit_code == 1
        assert "Missing configuration" in result.output
        store_transport.assert_not_called()


class TestConfigureCommand:
    """Tests for the configure command."""

    def test_writes_config(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(
                main, ["configure", "key", "secret", "shop.myshopify.com", "42"]
            )
            saved = yaml.safe_load(Path("config.yml").read_text())
        assert result.exit_code == 0
        assert saved == {
            "api_key": "key",
            "password": "secret",
            "store": "shop.myshopify.com",
            "theme_id": "42",
        }

    def test_existing_config_kept_when_declined(self, runner):
        with runner.isolated_filesystem():
            Path("config.yml").write_text("store: old\n")
            result = runner.invoke(
                main, ["configure", "key", "secret", "new"], input="n\n"
            )
            assert Path("config.yml").read_text() == "store: old\n"
        assert "Aborted." in result.output

    def test_force_overwrites(self, runner):
        with runner.isolated_filesystem():
            Path("config.yml").write_text("store: old\n")
            runner.invoke(main, ["configure", "key", "secret", "new", "--force"])
            saved = yaml.safe_load(Path("config.yml").read_text())
        assert saved["store"] == "new"
        assert saved["theme_id"] is None


class TestUploadCommand:
    """Tests for the upload command."""

    def test_upload_all_local_assets(self, runner, store_transport, fake_store):
        """Only whitelisted files are uploaded; config.yml never is."""
        with runner.isolated_filesystem():
            write_theme(
                {
                    "templates/index.liquid": "<h1>Hi</h1>",
                    "assets/a.js": "var a;",
                    "README.md": "# theme",
                }
            )
            result = runner.invoke(main, ["upload"])

        assert result.exit_code == 0
        assert put_keys(fake_store) == ["assets/a.js", "templates/index.liquid"]
        assert "Done." in result.output

    def test_upload_invalid_key_is_reported(self, runner, store_transport, fake_store):
        with runner.isolated_filesystem():
            write_theme({"secrets/key.txt": "x"})
            result = runner.invoke(main, ["upload", "secrets/key.txt"])

        assert result.exit_code == 0
        assert fake_store.requests == []
        assert "1 of 1" in result.output

    def test_quiet_still_prints_errors(self, runner, store_transport, fake_store):
        fake_store.status_override["PUT"] = 422
        with runner.isolated_filesystem():
            write_theme({"assets/a.js": "var a;"})
            result = runner.invoke(main, ["-q", "upload", "assets/a.js"])

        assert "Could not upload assets/a.js" in result.output
        assert "Done." not in result.output


class TestDownloadCommand:
    """Tests for the download command."""

    def test_download_all_with_exclude(self, runner, store_transport, fake_store):
        fake_store.assets = {
            "assets/a.js": {"value": "var a;"},
            "assets/b.scss": {"value": "$x: 1;"},
        }
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["download", "--exclude", r"\.scss$"])
            assert Path("assets/a.js").read_text() == "var a;"
            assert not Path("assets/b.scss").exists()
        assert result.exit_code == 0

    def test_invalid_exclude_pattern(self, runner, store_transport, fake_store):
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["download", "--exclude", "[unclosed"])

        assert result.exit_code == 1
        assert "Invalid pattern" in result.output
        assert fake_store.requests[0].method == "GET"
        assert not any(r.url.params.get("asset[key]") for r in fake_store.requests)

    def test_download_selected_key(self, runner, store_transport, fake_store):
        fake_store.assets = {"snippets/x.liquid": {"value": "x"}}
        with runner.isolated_filesystem():
            write_theme({})
            runner.invoke(main, ["download", "snippets/x.liquid"])
            assert Path("snippets/x.liquid").read_text() == "x"

    def test_environment_selects_store(self, runner, store_transport, fake_store):
        with runner.isolated_filesystem():
            write_theme({})
            runner.invoke(main, ["-e", "production", "download"])

        url = fake_store.requests[0].url
        assert url.host == "live.myshopify.com"
        assert url.path == "/admin/themes/99/assets.json"


class TestReplaceCommand:
    """Tests for the replace command."""

    def test_replace_deletes_stale_and_uploads(
        self, runner, store_transport, fake_store
    ):
        fake_store.assets = {
            "assets/stale.js": {"value": ""},
            "assets/a.js": {"value": "old"},
            "config/settings_data.json": {"value": "{}"},
        }
        with runner.isolated_filesystem():
            write_theme({"assets/a.js": "new"})
            result = runner.invoke(main, ["replace", "--yes"])

        assert result.exit_code == 0
        assert fake_store.assets == {
            "assets/a.js": {"value": "new"},
            "config/settings_data.json": {"value": "{}"},
        }

    def test_replace_declined(self, runner, store_transport, fake_store):
        with runner.isolated_filesystem():
            write_theme({"assets/a.js": "new"})
            result = runner.invoke(main, ["replace"], input="n\n")

        assert "Aborted." in result.output
        assert fake_store.requests == []


class TestRemoveCommand:
    """Tests for the remove command."""

    def test_remove_requires_keys(self, runner):
        result = runner.invoke(main, ["remove"])
        assert result.exit_code == 2

    def test_remove_keys(self, runner, store_transport, fake_store):
        fake_store.assets = {"assets/a.js": {"value": ""}}
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["remove", "assets/a.js"])

        assert result.exit_code == 0
        assert fake_store.assets == {}

    def test_authentication_failure_aborts(self, runner, store_transport, fake_store):
        fake_store.status_override["DELETE"] = 403
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["remove", "assets/a.js", "assets/b.js"])

        assert result.exit_code == 1
        assert len(fake_store.requests) == 1


class TestWatchCommand:
    """Tests for the watch command."""

    @pytest.fixture
    def mock_watcher(self):
        with patch("pyshoptheme.cli.ChangeWatcher") as mock_class:
            yield mock_class.return_value

    def test_watch_dispatches_events(
        self, runner, store_transport, fake_store, mock_watcher
    ):
        mock_watcher.watch.return_value = iter(
            [
                ChangeEvent("assets/a.js", ChangeKind.MODIFIED),
                ChangeEvent("assets/gone.js", ChangeKind.DELETED),
            ]
        )
        with runner.isolated_filesystem():
            write_theme({"assets/a.js": "var a;"})
            result = runner.invoke(main, ["watch"])

        assert result.exit_code == 0
        assert [r.method for r in fake_store.requests] == ["PUT", "DELETE"]

    def test_keep_files_skips_deletions(
        self, runner, store_transport, fake_store, mock_watcher
    ):
        mock_watcher.watch.return_value = iter(
            [ChangeEvent("assets/gone.js", ChangeKind.DELETED)]
        )
        with runner.isolated_filesystem():
            write_theme({})
            runner.invoke(main, ["watch", "--keep-files"])

        assert fake_store.requests == []

    def test_invalid_ignore_pattern(self, runner, store_transport, mock_watcher):
        with runner.isolated_filesystem():
            Path("config.yml").write_text(CONFIG + "  ignore_files: [\"(\"]\n")
            result = runner.invoke(main, ["-e", "production", "watch"])

        assert result.exit_code == 1
        assert "Invalid pattern" in result.output
        mock_watcher.watch.assert_not_called()

    def test_interrupt_stops_watcher(self, runner, store_transport, mock_watcher):
        mock_watcher.watch.side_effect = KeyboardInterrupt
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["watch"])

        assert result.exit_code == 0
        assert "Stopped watching." in result.output
        mock_watcher.stop.assert_called_once()


class TestOpenCommand:
    """Tests for the open command."""

    @patch("pyshoptheme.cli.click.launch")
    def test_open_preview_url(self, mock_launch, runner):
        with runner.isolated_filesystem():
            write_theme({})
            result = runner.invoke(main, ["open"])

        assert result.exit_code == 0
        mock_launch.assert_called_once_with(
            "https://example.myshopify.com?preview_theme_id=1234"
        )

    @patch("pyshoptheme.cli.click.launch")
    def test_open_without_store(self, mock_launch: Mock, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["open"])

        assert result.exit_code == 1
        mock_launch.assert_not_called()
