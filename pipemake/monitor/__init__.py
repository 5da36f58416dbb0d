"""Process monitor for pipeline runs.

Public API:
    - ProcessMonitor: message-serialized tracker of spawned processes
    - ProcessHandle: protocol for the processes it tracks
    - MonitorState: snapshot of tracked and killed ids
    - ProcessMonitorError, ProcessMonitorClosedError: exceptions
"""

from .exceptions import ProcessMonitorClosedError, ProcessMonitorError
from .models import MonitorState, ProcessHandle
from .process_monitor import ProcessMonitor

__all__ = [
    "MonitorState",
    "ProcessHandle",
    "ProcessMonitor",
    "ProcessMonitorClosedError",
    "ProcessMonitorError",
]
