"""Messages handled by the process monitor and the process handle protocol."""

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Optional, Protocol


class ProcessHandle(Protocol):
    """What the monitor needs from a process (satisfied by subprocess.Popen)."""

    pid: int

    def poll(self) -> Optional[int]: ...

    def kill(self) -> None: ...


@dataclass
class MonitorMessage:
    """Base message. ``reply`` is resolved once the message is handled."""

    reply: Future = field(default_factory=Future, init=False)


@dataclass
class Add(MonitorMessage):
    process: ProcessHandle


@dataclass
class Remove(MonitorMessage):
    process: ProcessHandle


@dataclass
class Kill(MonitorMessage):
    process: ProcessHandle


@dataclass
class IsKilled(MonitorMessage):
    process: ProcessHandle


@dataclass
class KillAll(MonitorMessage):
    pass


@dataclass
class Snapshot(MonitorMessage):
    pass


@dataclass
class Shutdown(MonitorMessage):
    pass


@dataclass(frozen=True)
class MonitorState:
    """Tracked and killed process ids, as seen by one message."""

    tracked: frozenset[int]
    killed: frozenset[int]
