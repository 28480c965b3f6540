"""faultline - error reporting client."""

__version__ = "0.1.0"

from faultline.client import Client, render_event, send_event
from faultline.config import Config, configure, get_config
from faultline.errors import (
    ConfigurationError,
    DeliveryError,
    EncodingError,
    FaultlineError,
    InvalidDSNError,
    RequestFailure,
)
from faultline.models import Event
from faultline.results import SendResult, SendResultMode, SendStatus
from faultline.state import last_event_id
from faultline.transports import TerminalTransport, create_transport

__all__ = [
    "send_event",
    "render_event",
    "configure",
    "get_config",
    "last_event_id",
    "Client",
    "Config",
    "Event",
    "SendResult",
    "SendResultMode",
    "SendStatus",
    "FaultlineError",
    "ConfigurationError",
    "DeliveryError",
    "InvalidDSNError",
    "EncodingError",
    "RequestFailure",
    "TerminalTransport",
    "create_transport",
]

try:
    from faultline.transports.redis import RedisTransport

    __all__ += ["RedisTransport"]
except ImportError:
    pass

try:
    from faultline.transports.rabbitmq import RabbitMQTransport

    __all__ += ["RabbitMQTransport"]
except ImportError:
    pass
