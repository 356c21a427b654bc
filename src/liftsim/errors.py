from __future__ import annotations


class LiftSimError(Exception):
    """Base class for every failure raised by the simulator."""


class InputFileError(LiftSimError, ValueError):
    """The request file is missing, has the wrong extension or cannot be parsed."""


class InvalidRequestError(LiftSimError, ValueError):
    """A request is unusable, e.g. its origin and destination are the same floor."""


class ConfigError(LiftSimError, ValueError):
    pass


class TickLimitExceeded(LiftSimError):
    """The run hit its tick bound before every passenger was served."""

    def __init__(self, tick_limit: int, served: int, total: int) -> None:
        super().__init__(
            f"Tick limit {tick_limit} reached with {served} of {total} passengers served"
        )
        self.tick_limit = tick_limit
        self.served = served
        self.total = total


class CapacityExceeded(LiftSimError):
    pass


class LogWriteError(LiftSimError):
    pass


class DispatchError(LiftSimError):
    """A policy was asked to act on a lift in a state it cannot handle."""
