"""Result type and domain errors for Viera TV control.

Public operations return an :class:`Outcome` instead of raising. Expected
failures (TV unreachable, wrong PIN, TV in standby, ...) travel as the
``error`` payload; only internal invariant violations raise.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class VieraError(Exception):
    """Base error for viera_tv."""


class ConnectivityError(VieraError):
    """Raised when the TV cannot be reached or the request times out."""


class DeviceHTTPError(ConnectivityError):
    """The TV answered with an HTTP error status."""

    def __init__(self, status: int, body: str = ""):
        super().__init__(f"TV returned HTTP {status}")
        self.status = status
        self.body = body


class MalformedReplyError(VieraError):
    """A reply could not be parsed or lacks an expected element."""


class SessionInvalidatedError(VieraError):
    """The TV no longer recognizes the encrypted session."""


class AuthenticationError(VieraError):
    """Credentials are missing or were rejected."""


class WrongPinError(AuthenticationError):
    """The PIN code did not match the one shown on the TV."""


class StandbyError(VieraError):
    """The TV is in standby and cannot serve the request."""


class MisuseError(VieraError):
    """The operation does not apply to this TV or got invalid arguments."""


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or an error, never both."""

    value: Optional[T] = None
    error: Optional[VieraError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok


def success(value: Optional[T] = None) -> Outcome[T]:
    return Outcome(value=value)


def failure(error: VieraError) -> Outcome:
    return Outcome(error=error)
