"""Transports that deliver rendered events."""

from faultline.errors import InvalidDSNError
from faultline.transports.base import Transport
from faultline.transports.terminal import TerminalTransport

__all__ = [
    "Transport",
    "TerminalTransport",
    "create_transport",
]


def create_transport(dsn: str | None, **kwargs) -> Transport:
    """Create a transport from a DSN.

    Args:
        dsn: Destination URL (redis://, amqp://, rabbitmq://, terminal://, stdout://)
        **kwargs: Additional transport-specific configuration

    Raises:
        InvalidDSNError: If the DSN is missing or its scheme is not supported
        ImportError: If the transport's dependencies are not installed
    """
    if not dsn or "://" not in dsn:
        raise InvalidDSNError(dsn)

    scheme = dsn.split("://")[0].lower()

    if scheme in ("redis", "rediss"):
        try:
            from faultline.transports.redis import RedisTransport
        except ImportError as e:
            raise ImportError(
                "Redis support not installed. Install with: pip install 'faultline[redis]'"
            ) from e
        return RedisTransport(redis_url=dsn, **kwargs)

    elif scheme in ("amqp", "amqps", "rabbitmq"):
        try:
            from faultline.transports.rabbitmq import RabbitMQTransport
        except ImportError as e:
            raise ImportError(
                "RabbitMQ support not installed. Install with: pip install 'faultline[rabbitmq]'"
            ) from e
        if scheme == "rabbitmq":
            dsn = "amqp://" + dsn.split("://", 1)[1]
        return RabbitMQTransport(rabbitmq_url=dsn, **kwargs)

    elif scheme == "terminal":
        return TerminalTransport(**kwargs)

    elif scheme == "stdout":
        import sys

        return TerminalTransport(output=sys.stdout, **kwargs)

    raise InvalidDSNError(dsn)
