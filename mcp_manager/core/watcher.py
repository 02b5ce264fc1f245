"""Re-sync agents as soon as their config files change on disk."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from mcp_manager.core.reconciler import Reconciler, SyncSummary
from mcp_manager.output import MessageType, VerbosityLevel, message

DEFAULT_DEBOUNCE = timedelta(milliseconds=500)


class _AgentFileHandler(FileSystemEventHandler):
    """Maps events in one directory to the agents whose files they touch."""

    def __init__(self, watcher: ConfigWatcher, files: dict[Path, str]):
        super().__init__()
        self.watcher = watcher
        self.files = files

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        # Atomic writes arrive as a move onto the config file
        for raw in (event.src_path, getattr(event, "dest_path", "")):
            if not raw:
                continue
            agent_id = self.files.get(Path(os.fsdecode(raw)))
            if agent_id is not None:
                message(
                    f"Config file for {agent_id} changed ({event.event_type})",
                    MessageType.DEBUG,
                    VerbosityLevel.DEBUG,
                )
                self.watcher.schedule(agent_id)


class ConfigWatcher:
    """Watches every connector's config files and syncs the owning agent.

    Bursts of events for one agent (editors often write several times) are
    coalesced: the agent is synced once, ``debounce`` after the last event.
    Directories that do not exist when :meth:`start` runs are not watched.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        debounce: timedelta = DEFAULT_DEBOUNCE,
        on_summary: Callable[[SyncSummary], None] | None = None,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.reconciler = reconciler
        self.debounce = debounce
        self.on_summary = on_summary
        self.syncs = 0
        self._observer_factory = observer_factory
        self._observer = None
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def watched_files(self) -> dict[Path, str]:
        """Return every connector config file mapped to its agent id."""
        files: dict[Path, str] = {}
        for connector in self.reconciler.agent_manager.connectors:
            for path in connector.config_files():
                files.setdefault(Path(path).absolute(), connector.agent_id)
        return files

    def start(self) -> None:
        if self._observer is not None:
            return

        by_directory: dict[Path, dict[Path, str]] = {}
        for path, agent_id in self.watched_files().items():
            by_directory.setdefault(path.parent, {})[path] = agent_id

        observer = self._observer_factory()
        for directory, files in by_directory.items():
            if not directory.is_dir():
                message(f"Not watching missing directory {directory}", MessageType.DEBUG, VerbosityLevel.DEBUG)
                continue
            observer.schedule(_AgentFileHandler(self, files), str(directory), recursive=False)
            message(
                f"Watching {', '.join(sorted(p.name for p in files))} in {directory}",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
        observer.start()
        self._observer = observer

    def stop(self, timeout: float | None = 2.0) -> None:
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
            self._observer = None

    def schedule(self, agent_id: str) -> None:
        """Sync *agent_id* after the debounce delay, restarting any pending delay."""
        with self._lock:
            pending = self._timers.get(agent_id)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self.debounce.total_seconds(), self._fire, args=(agent_id,))
            timer.daemon = True
            self._timers[agent_id] = timer
            timer.start()

    def _fire(self, agent_id: str) -> None:
        with self._lock:
            if self._timers.get(agent_id) is threading.current_thread():
                del self._timers[agent_id]

        try:
            summary = self.reconciler.sync_agent(agent_id)
        except Exception as e:
            message(f"Failed to sync {agent_id} after a config change: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            return

        self.syncs += 1
        message(
            f"Synced {agent_id} after a config change: {summary.changed} change(s)",
            MessageType.INFO,
            VerbosityLevel.VERBOSE,
        )
        if self.on_summary is not None:
            self.on_summary(summary)
