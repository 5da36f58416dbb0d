"""ProcessMonitor - tracks the OS processes spawned during a pipeline run."""

import logging
import queue
import threading
from typing import Optional

from pipemake import console
from pipemake.console import ConsoleWriter

from .exceptions import ProcessMonitorClosedError
from .models import (
    Add,
    IsKilled,
    Kill,
    KillAll,
    MonitorMessage,
    MonitorState,
    ProcessHandle,
    Remove,
    Shutdown,
    Snapshot,
)

logger = logging.getLogger(__name__)


class ProcessMonitor:
    """Single owner of the set of processes spawned during a pipeline run.

    All state lives on one worker thread that handles messages from a
    queue, one at a time. Every public method posts a message and blocks
    until the worker has applied it, so registration and kill-all never
    race each other.

    Steps register their processes with add() and drop them with
    remove(). A cancellation handler calls kill_all(), after which every
    newly added process is killed on arrival. A step that sees
    is_killed() for its process knows the exit was requested rather than
    organic.

    Example:
        with ProcessMonitor(writer) as monitor:
            proc = subprocess.Popen(["make"])
            monitor.add(proc)
            ...
            monitor.remove(proc)
    """

    def __init__(self, console_writer: Optional[ConsoleWriter] = None):
        """Start the monitor's worker thread.

        Args:
            console_writer: Writer used to warn about processes that could
                not be killed. Warnings are only logged when omitted.
        """
        self._console = console_writer
        self._queue: "queue.Queue[MonitorMessage]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._processes: dict[int, ProcessHandle] = {}
        self._killed: set[int] = set()
        self._killing_all = False
        self._worker = threading.Thread(
            target=self._receive_loop, name="pipemake-process-monitor", daemon=True
        )
        self._worker.start()

    def __enter__(self) -> "ProcessMonitor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # Worker side

    def _receive_loop(self) -> None:
        while True:
            msg = self._queue.get()
            if isinstance(msg, Shutdown):
                msg.reply.set_result(None)
                return
            try:
                msg.reply.set_result(self._handle(msg))
            except Exception as e:
                msg.reply.set_exception(e)

    def _handle(self, msg: MonitorMessage):
        if isinstance(msg, Add):
            if msg.process.poll() is not None:
                logger.debug("Process %d already exited, not tracking", msg.process.pid)
            elif self._killing_all:
                logger.debug("Process %d started after kill_all, killing it", msg.process.pid)
                if self._kill_process(msg.process):
                    self._killed.add(msg.process.pid)
            else:
                self._processes[msg.process.pid] = msg.process
            return None
        if isinstance(msg, Remove):
            self._processes.pop(msg.process.pid, None)
            return None
        if isinstance(msg, Kill):
            if self._kill_process(msg.process):
                self._processes.pop(msg.process.pid, None)
                self._killed.add(msg.process.pid)
            return None
        if isinstance(msg, IsKilled):
            return msg.process.pid in self._killed
        if isinstance(msg, KillAll):
            self._killing_all = True
            for pid, proc in list(self._processes.items()):
                if self._kill_process(proc):
                    self._killed.add(pid)
            self._processes.clear()
            return None
        if isinstance(msg, Snapshot):
            return MonitorState(
                tracked=frozenset(self._processes), killed=frozenset(self._killed)
            )
        raise TypeError(f"Unknown process monitor message: {msg!r}")

    def _kill_process(self, proc: ProcessHandle) -> bool:
        """Kill a running process. Returns False if it had already exited."""
        if proc.poll() is not None:
            return False
        try:
            proc.kill()
            logger.debug("Killed process %d", proc.pid)
        except OSError as e:
            logger.warning("Failed to kill process %d", proc.pid, exc_info=True)
            if self._console is not None:
                self._console.write_line(
                    console.warn("Failed to kill process ")
                    .append_token(str(proc.pid))
                    .append(". Exception: ")
                    .append_token(str(e))
                )
        return True

    # Caller side

    def _post(self, msg: MonitorMessage, operation: str):
        with self._lock:
            if self._closed:
                raise ProcessMonitorClosedError(operation)
            if isinstance(msg, Shutdown):
                self._closed = True
            self._queue.put(msg)
        return msg.reply.result()

    def add(self, process: ProcessHandle) -> None:
        """Track a running process. Already exited processes are ignored.

        After kill_all() the process is killed at once instead of tracked.
        """
        self._post(Add(process), "add a process")

    def remove(self, process: ProcessHandle) -> None:
        """Stop tracking a process."""
        self._post(Remove(process), "remove a process")

    def kill(self, process: ProcessHandle) -> None:
        """Kill a process if it is still running and record it as killed."""
        self._post(Kill(process), "kill a process")

    def is_killed(self, process: ProcessHandle) -> bool:
        """Return True if this monitor killed the process."""
        return self._post(IsKilled(process), "check a process")

    def kill_all(self) -> None:
        """Kill every tracked process and empty the tracked set.

        Processes added afterwards are killed as soon as they are added.
        """
        self._post(KillAll(), "kill processes")

    def snapshot(self) -> MonitorState:
        return self._post(Snapshot(), "read state")

    def tracked_ids(self) -> frozenset[int]:
        return self.snapshot().tracked

    def killed_ids(self) -> frozenset[int]:
        return self.snapshot().killed

    @property
    def is_closed(self) -> bool:
        return self._closed

    def shutdown(self) -> None:
        """Stop the worker once already queued messages are handled.

        Safe to call more than once.
        """
        with self._lock:
            if self._closed:
                return
        try:
            self._post(Shutdown(), "shut down")
        except ProcessMonitorClosedError:
            return
        self._worker.join()
