"""Exception types raised across the explorer."""
from __future__ import annotations


class ScoutError(RuntimeError):
    """Base class for explorer failures."""


class OracleError(ScoutError):
    """The decision oracle could not produce a usable answer."""

    kind = "error"


class OracleUnavailable(OracleError):
    kind = "unavailable"


class OracleTimeout(OracleError):
    kind = "timeout"


class OracleMalformedResponse(OracleError):
    kind = "malformed"


class ElementNotFound(ScoutError):
    """Target element is absent; an expected exploration outcome."""


class DriverError(ScoutError):
    """Browser driver operation failed."""


class NavigationTimeout(DriverError):
    pass


class DriverInitError(ScoutError):
    """The browser could not be started; the run aborts before any step."""


class UnknownActionError(ScoutError):
    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action}")
        self.action = action
