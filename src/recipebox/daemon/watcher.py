"""File watcher using watchfiles for async filesystem monitoring.

Design:
- Dispatchers are registered per folder (any change directly inside it) or
  per file (changes to exactly that path)
- Files are watched through their parent folder, so editors that replace a
  file by renaming a temp file over it are still noticed
- awatch batches bursts of changes (debounce window); every dispatcher gets
  the changes of one batch in a single call
- Dispatchers run in a worker thread; they may block on locks
- Registering a path while running restarts awatch with the new path set
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from watchfiles import Change, awatch

logger = structlog.get_logger()

FileChange = tuple[Change, Path]
Dispatcher = Callable[[list[FileChange]], None]

# Debouncing configuration
DEBOUNCE_MS = 500
STEP_MS = 50


@dataclass
class FileWatcher:
    """
    Async file watcher delivering batched changes to registered dispatchers.

    Usage::

        watcher = FileWatcher()
        watcher.add_folder_watch(templates_dir, on_templates_changed)
        watcher.add_file_watch(tokens_file, on_tokens_changed)
        await watcher.start()
        ...
        await watcher.stop()
    """

    debounce_ms: int = DEBOUNCE_MS
    step_ms: int = STEP_MS
    force_polling: bool = False

    _folder_dispatchers: dict[Path, Dispatcher] = field(default_factory=dict, init=False)
    _file_dispatchers: dict[Path, Dispatcher] = field(default_factory=dict, init=False)
    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    @property
    def running(self) -> bool:
        return self._watch_task is not None

    def watched_dirs(self) -> set[Path]:
        """Folders handed to awatch: registered folders plus parents of registered files."""
        dirs = set(self._folder_dispatchers)
        dirs.update(path.parent for path in self._file_dispatchers)
        return dirs

    def add_folder_watch(self, folder: Path, dispatcher: Dispatcher) -> None:
        """Call ``dispatcher`` for changes to files directly inside ``folder``."""
        self._register(folder.resolve(), dispatcher, self._folder_dispatchers)

    def add_file_watch(self, file: Path, dispatcher: Dispatcher) -> None:
        """Call ``dispatcher`` for changes to ``file``."""
        self._register(file.resolve(), dispatcher, self._file_dispatchers)

    def _register(self, path: Path, dispatcher: Dispatcher, table: dict[Path, Dispatcher]) -> None:
        if path in table:
            raise ValueError(f"watcher for {path} already exists")
        table[path] = dispatcher
        logger.debug("watch_registered", path=str(path))
        if self._watch_task is not None:
            self._restart()

    def _restart(self) -> None:
        if self._watch_task is not None:
            self._watch_task.cancel()
        self._watch_task = asyncio.create_task(self._watch_loop())

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._watch_task is not None:
            return
        self._stop_event.clear()
        self._watch_task = asyncio.create_task(self._watch_loop())
        logger.info(
            "file_watcher_started",
            dirs=sorted(str(d) for d in self.watched_dirs()),
            debounce_ms=self.debounce_ms,
        )

    async def stop(self) -> None:
        """Stop watching for file changes."""
        self._stop_event.set()
        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None
        logger.info("file_watcher_stopped")

    def group_changes(
        self, changes: set[tuple[Change, str]]
    ) -> list[tuple[Dispatcher, list[FileChange]]]:
        """Group a batch of raw changes by the dispatcher responsible for them."""
        groups: dict[Path, tuple[Dispatcher, list[FileChange]]] = {}
        for change_type, path_str in sorted(changes, key=lambda c: c[1]):
            path = Path(path_str)
            key = path
            dispatcher = self._file_dispatchers.get(key)
            if dispatcher is None:
                key = path.parent
                dispatcher = self._folder_dispatchers.get(key)
            if dispatcher is None:
                logger.debug("unregistered_change", path=path_str, change_type=change_type.name)
                continue
            groups.setdefault(key, (dispatcher, []))[1].append((change_type, path))
        return list(groups.values())

    async def _handle_changes(self, changes: set[tuple[Change, str]]) -> None:
        for dispatcher, events in self.group_changes(changes):
            logger.debug("dispatching_changes", count=len(events))
            try:
                await asyncio.to_thread(dispatcher, events)
            except Exception as e:
                logger.error("dispatcher_failed", error=str(e), exc_info=True)

    async def _watch_loop(self) -> None:
        """Main watch loop; re-enters awatch after errors."""
        try:
            while not self._stop_event.is_set():
                watch_dirs = sorted(d for d in self.watched_dirs() if d.is_dir())
                if not watch_dirs:
                    logger.warning("no_watchable_dirs")
                    return

                try:
                    async for changes in awatch(
                        *watch_dirs,
                        recursive=False,
                        debounce=self.debounce_ms,
                        step=self.step_ms,
                        stop_event=self._stop_event,
                        force_polling=self.force_polling,
                        ignore_permission_denied=True,
                    ):
                        await self._handle_changes(changes)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if self._stop_event.is_set():
                        return
                    logger.error("watcher_error", error=str(e))
                    # Brief backoff before retry
                    await asyncio.sleep(1.0)
        except asyncio.CancelledError:
            pass
