"""Optional watchdog-based change notifier that wakes watchers before their next poll."""

import logging
import os

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from logstream.watcher import GrowthWatcher

logger = logging.getLogger(__name__)


class ChangeNotifier(FileSystemEventHandler):
    """Maps filesystem events on watched files to ``GrowthWatcher.wake()``.

    Events only shorten the wait; the watcher's own tick still decides what
    to read, so a missed or duplicate event changes nothing.
    """

    def __init__(self, watchers: list[GrowthWatcher]):
        super().__init__()
        self._by_path = {os.path.abspath(w.source.path): w for w in watchers}
        self._observer = None

    def _notify(self, path: str):
        watcher = self._by_path.get(os.path.abspath(path))
        if watcher is not None:
            watcher.wake()

    def on_modified(self, event):
        if not event.is_directory:
            self._notify(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._notify(event.src_path)

    def watched_dirs(self) -> set[str]:
        return {os.path.dirname(p) for p in self._by_path}

    def start(self):
        observer = Observer()
        for dir_path in sorted(self.watched_dirs()):
            if not os.path.isdir(dir_path):
                logger.warning("Directory %s does not exist, relying on polling", dir_path)
                continue
            observer.schedule(self, dir_path, recursive=False)
            logger.info("Watching directory: %s", dir_path)
        observer.start()
        self._observer = observer

    def stop(self):
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
