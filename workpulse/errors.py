from __future__ import annotations


class WorkPulseError(Exception):
    pass


class PersistenceError(WorkPulseError):
    """A read or write against the session store failed."""


class SessionNotFoundError(PersistenceError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"session not found: {session_id}")
        self.session_id = session_id


class InvalidRangeError(WorkPulseError, ValueError):
    pass


class InvalidStateTransition(WorkPulseError):
    def __init__(self, command: str, state: str) -> None:
        super().__init__(f"cannot {command} while {state}")
        self.command = command
        self.state = state
