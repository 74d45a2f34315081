"""Sync dispatcher: turns keys and change events into asset operations."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Optional, TypeVar, cast

from ..api import ShopifyThemeClient
from ..budget import BudgetTracker
from ..exceptions import (
    InvalidAssetPathError,
    ThemeAPIError,
    ThemeAuthenticationError,
    UnknownChangeKindError,
)
from ..models import AssetOpResult, ChangeEvent, ChangeKind, FetchedAsset
from ..output import OutputFormatter
from ..utils import DEFAULT_WHITELIST, normalize_key
from .classifier import FilterPolicy, is_ignored, is_valid_upload_path
from .operations import LocalAssetStore
from .watcher import ChangeWatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

THROTTLE_MESSAGE = (
    "Approaching limit of API permits. Naptime until more permits become available!"
)


class SyncDispatcher:
    """Runs asset operations one at a time against the store.

    Every operation returns an :class:`AssetOpResult`. Per-asset problems
    (invalid path, local I/O, remote failure) are reported and returned,
    never raised; only authentication failures and unknown event kinds
    propagate.
    """

    def __init__(
        self,
        client: ShopifyThemeClient,
        root: Path,
        output: Optional[OutputFormatter] = None,
        budget: Optional[BudgetTracker] = None,
    ):
        """Initialize the dispatcher.

        Args:
            client: Theme API client
            root: Theme root directory
            output: Output formatter for status reporting
            budget: Budget tracker shared with the client (defaults to the
                client's own)
        """
        self.client = client
        self.budget = budget or client.budget
        self.output = output or OutputFormatter()
        self.store = LocalAssetStore(root)

    # =========================
    # Single asset operations
    # =========================

    def upload_asset(self, key: str) -> AssetOpResult:
        """Upload a local file to the store."""
        key = normalize_key(key)
        try:
            self._require_valid_path(key)
            content = self.store.read(key)
        except InvalidAssetPathError as e:
            return self._reject(e)
        except OSError as e:
            return self._local_failure(key, "upload", e)

        logger.debug(f"Uploading {key} ({type(content).__name__})")
        result = self._call(key, lambda: self.client.put_asset(key, content))
        if result.success:
            self.output.status("uploaded", key)
        else:
            self.output.report_error(f"Could not upload {key}", result)
        return result

    def download_asset(self, key: str) -> AssetOpResult:
        """Download an asset from the store into the theme root.

        A missing remote asset writes nothing and is reported as a warning.
        """
        key = normalize_key(key)
        try:
            self._require_valid_path(key)
        except InvalidAssetPathError as e:
            return self._reject(e)

        logger.debug(f"Downloading {key}")
        fetched = self._call(
            key,
            lambda: self.client.get_asset(key),
            on_error=lambda result: FetchedAsset(result=result),
        )
        result = fetched.result

        if fetched.content is None:
            if result.status_code == 404:
                self.output.report_warning(f"'{key}' was not found on the store")
            elif result.success:
                self.output.report_warning(f"'{key}' has no content to download")
            else:
                self.output.report_error(f"Could not download {key}", result)
            return result

        try:
            self.store.write(key, fetched.content)
        except OSError as e:
            return self._local_failure(key, "download", e)

        self.output.status("downloaded", key)
        return result

    def remove_asset(self, key: str) -> AssetOpResult:
        """Delete an asset from the store."""
        key = normalize_key(key)
        try:
            self._require_valid_path(key)
        except InvalidAssetPathError as e:
            return self._reject(e)

        logger.debug(f"Removing {key}")
        result = self._call(key, lambda: self.client.delete_asset(key))
        if result.success:
            self.output.status("removed", key)
        else:
            self.output.report_error(f"Could not remove {key}", result)
        return result

    def sync_from_event(self, event: ChangeEvent) -> AssetOpResult:
        """Mirror a single local change to the store.

        Raises:
            UnknownChangeKindError: If the event kind is not handled
        """
        if event.kind in (ChangeKind.CREATED, ChangeKind.MODIFIED):
            return self.upload_asset(event.key)
        if event.kind == ChangeKind.DELETED:
            return self.remove_asset(event.key)
        raise UnknownChangeKindError(f"Unknown event -- {event.kind} -- {event.key}")

    # =========================
    # Batch operations
    # =========================

    def upload_many(self, keys: Iterable[str]) -> list[AssetOpResult]:
        return [self.upload_asset(key) for key in keys]

    def download_many(self, keys: Iterable[str]) -> list[AssetOpResult]:
        return [self.download_asset(key) for key in keys]

    def remove_many(self, keys: Iterable[str]) -> list[AssetOpResult]:
        return [self.remove_asset(key) for key in keys]

    def replace(
        self,
        upload_keys: Iterable[str],
        delete_keys: Iterable[str],
        policy: Optional[FilterPolicy] = None,
    ) -> list[AssetOpResult]:
        """Delete remote assets, then upload local ones.

        Keys in ``delete_keys`` that match an ignore pattern are left on
        the store.

        Args:
            upload_keys: Keys to upload after the deletions
            delete_keys: Keys to delete first
            policy: Filter policy whose ignore patterns protect remote assets
        """
        policy = policy or FilterPolicy()
        doomed = [key for key in delete_keys if not is_ignored(key, policy)]
        return self.remove_many(doomed) + self.upload_many(upload_keys)

    def run_watch(self, watcher: ChangeWatcher, keep_files: bool = False) -> int:
        """Drain a watcher's events until it stops.

        Args:
            watcher: Change watcher to consume
            keep_files: If True, deletions are not mirrored to the store

        Returns:
            Number of events dispatched
        """
        dispatched = 0
        for event in watcher.watch():
            if keep_files and event.kind == ChangeKind.DELETED:
                logger.debug(f"Keeping remote copy of {event.key}")
                continue
            self.sync_from_event(event)
            dispatched += 1
        return dispatched

    def display_summary(self, results: list[AssetOpResult]) -> None:
        """Print the number of failed operations, then ``Done.``."""
        failed = [r for r in results if not r.success]
        if failed:
            self.output.warning(
                f"{len(failed)} of {len(results)} asset(s) failed: "
                + ", ".join(r.key for r in failed)
            )
        self.output.success("Done.")

    # =========================
    # Helpers
    # =========================

    def _require_valid_path(self, key: str) -> None:
        if not is_valid_upload_path(key):
            raise InvalidAssetPathError(key, DEFAULT_WHITELIST)

    def _reject(self, error: InvalidAssetPathError) -> AssetOpResult:
        self.output.report_warning(
            f"'{error.key}' is not in a valid file for theme uploads.",
            "Files need to be in one of the following subdirectories:",
            *error.valid_directories,
        )
        return AssetOpResult(key=error.key, success=False, error_detail=str(error))

    def _local_failure(self, key: str, action: str, error: OSError) -> AssetOpResult:
        logger.debug(f"Local I/O failed for {key}: {error}")
        result = AssetOpResult(key=key, success=False, error_detail=str(error))
        self.output.report_error(f"Could not {action} {key}: {error}")
        return result

    def _wait_for_budget(self) -> None:
        if self.budget.should_throttle():
            self.output.warning(THROTTLE_MESSAGE)
        self.budget.wait_if_needed()

    def _call(
        self,
        key: str,
        operation: Callable[[], T],
        on_error: Optional[Callable[[AssetOpResult], T]] = None,
    ) -> T:
        """Wait for the budget, then run a remote operation.

        API errors other than authentication failures are turned into a
        failed result.
        """
        self._wait_for_budget()
        try:
            return operation()
        except ThemeAuthenticationError:
            raise
        except ThemeAPIError as e:
            result = AssetOpResult(
                key=key,
                success=False,
                status_code=e.status_code,
                request_id=e.request_id,
                error_detail=str(e),
            )
            if on_error is not None:
                return on_error(result)
            return cast(T, result)
