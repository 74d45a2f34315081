"""File system watcher producing theme change events.

Uses the watchdog library to observe the theme root. Events are put on
an unbounded queue by the observer thread and drained by
:meth:`ChangeWatcher.watch`, so a slow consumer never loses events.
"""

import logging
import os
import queue
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Callable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..models import ChangeEvent, ChangeKind
from .classifier import FilterPolicy
from .scanner import AssetScanner

logger = logging.getLogger(__name__)


class _QueueingHandler(FileSystemEventHandler):
    """Translates watchdog file events into :class:`ChangeEvent` values."""

    def __init__(self, watcher: "ChangeWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.emit(event.src_path, ChangeKind.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.emit(event.src_path, ChangeKind.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.emit(event.src_path, ChangeKind.DELETED)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.emit(event.src_path, ChangeKind.DELETED)
            self.watcher.emit(event.dest_path, ChangeKind.CREATED)


class ChangeWatcher:
    """Watches a theme root and yields filtered change events.

    Deletions always pass so that a remote copy can be removed even for a
    path that would not be uploaded. Creations and modifications pass
    only for keys accepted by the filter policy.

    Examples:
        >>> watcher = ChangeWatcher(Path("."), policy)
        >>> for event in watcher.watch():
        ...     dispatcher.sync_from_event(event)
    """

    def __init__(
        self,
        root: Path,
        policy: Optional[FilterPolicy] = None,
        poll_interval: float = 0.5,
        observer_factory: Callable[[], Any] = Observer,
    ):
        """Initialize the watcher.

        Args:
            root: Theme root directory
            policy: Filter policy for created/modified files
            poll_interval: Seconds between checks of the stop flag
            observer_factory: Factory for the watchdog observer
        """
        self.root = Path(os.path.abspath(root))
        self.scanner = AssetScanner(policy)
        self.poll_interval = poll_interval
        self.events: "queue.Queue[ChangeEvent]" = queue.Queue()
        self._observer_factory = observer_factory
        self._handler = _QueueingHandler(self)
        self._stop = threading.Event()

    def to_key(self, path: Union[str, bytes]) -> Optional[str]:
        """Convert an absolute event path to a root-relative asset key."""
        absolute = Path(os.path.abspath(os.fsdecode(path)))
        try:
            return absolute.relative_to(self.root).as_posix()
        except ValueError:
            return None

    def accepts(self, event: ChangeEvent) -> bool:
        if event.kind == ChangeKind.DELETED:
            return True
        return self.scanner.accepts(event.key)

    def emit(self, path: Union[str, bytes], kind: ChangeKind) -> None:
        """Queue an event for ``path`` if it passes the filter."""
        key = self.to_key(path)
        if key is None:
            return
        event = ChangeEvent(key=key, kind=kind)
        if not self.accepts(event):
            logger.debug(f"Ignoring {kind.value} event for {key}")
            return
        logger.debug(f"Queued {kind.value} event for {key}")
        self.events.put(event)

    def watch(self) -> Iterator[ChangeEvent]:
        """Yield change events until :meth:`stop` is called.

        The observer is started on first iteration and stopped when the
        generator finishes or is closed.
        """
        self._stop.clear()
        observer = self._observer_factory()
        observer.schedule(self._handler, str(self.root), recursive=True)
        observer.start()
        logger.debug(f"Watching {self.root}")
        try:
            while not self._stop.is_set():
                try:
                    event = self.events.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue
                yield event
        finally:
            observer.stop()
            observer.join()
            logger.debug(f"Stopped watching {self.root}")

    def stop(self) -> None:
        """Ask :meth:`watch` to finish at its next poll."""
        self._stop.set()
