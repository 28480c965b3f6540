"""Exception taxonomy for faultline.

Configuration errors are programmer errors and are raised. Delivery errors
are raised by transports but never escape ``send_event``: the client wraps
them in a failed ``SendResult`` and logs a diagnostic line.
"""

import traceback
from typing import Any


class FaultlineError(Exception):
    """Base class for all faultline errors."""


class ConfigurationError(FaultlineError):
    """Malformed configuration or use of a retired option."""


class DeliveryError(FaultlineError):
    """An event could not be delivered."""


class InvalidDSNError(DeliveryError):
    def __init__(self, dsn: str | None = None):
        self.dsn = dsn
        super().__init__(f"invalid DSN: {dsn!r}")


class EncodingError(DeliveryError):
    def __init__(self, error: BaseException):
        self.error = error
        super().__init__(f"unable to encode payload: {error}")


class RequestFailure(DeliveryError):
    """The transport gave up. ``last_error`` is whatever the final attempt produced."""

    def __init__(self, last_error: Any):
        self.last_error = last_error
        super().__init__(f"request failed: {last_error!r}")


def describe_delivery_error(error: DeliveryError) -> str:
    """Return the one-line diagnostic for a delivery failure."""
    if isinstance(error, InvalidDSNError):
        return "Cannot send event because of invalid DSN"

    if isinstance(error, EncodingError):
        return f"Unable to encode JSON event - {error.error!r}"

    if isinstance(error, RequestFailure):
        last_error = error.last_error
        if isinstance(last_error, BaseException) and last_error.__traceback__ is not None:
            return "".join(
                traceback.format_exception(type(last_error), last_error, last_error.__traceback__)
            ).rstrip()
        return f"Error in transport request - {last_error!r}"

    return f"Unexpected delivery error - {error!r}"
