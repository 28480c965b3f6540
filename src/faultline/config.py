"""Configuration for faultline.

A ``Config`` is validated once when it is built: hook shapes, the sample
rate range and the log level are all checked up front. ``configure()``
installs the process-wide config read by the module-level ``send_event``.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from faultline.errors import ConfigurationError
from faultline.hooks import Hook, coerce_hook
from faultline.results import SendResultMode
from faultline.serialization import JSONEncoder, JSONLibrary

DEFAULT_REQUEST_RETRIES = 4


class Config(BaseModel):
    """Client options.

    Hooks may be given as callables or ``(receiver, method_name)`` tuples;
    they are stored as ``Hook`` values.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    dsn: str | None = None
    sample_rate: float = 1.0
    send_result: SendResultMode = SendResultMode.SYNC
    request_retries: int = Field(default=DEFAULT_REQUEST_RETRIES, ge=0)
    log_level: int = logging.WARNING
    json_library: Any = Field(default_factory=JSONLibrary)
    before_send_event: Hook | None = None
    after_send_event: Hook | None = None

    @field_validator("before_send_event", mode="before")
    @classmethod
    def _validate_before_send(cls, value: Any) -> Hook | None:
        return coerce_hook(value, 1, "before_send_event")

    @field_validator("after_send_event", mode="before")
    @classmethod
    def _validate_after_send(cls, value: Any) -> Hook | None:
        return coerce_hook(value, 2, "after_send_event")

    @field_validator("sample_rate")
    @classmethod
    def _validate_sample_rate(cls, value: float) -> float:
        if not 0 <= value <= 1:
            raise ConfigurationError(f"sample_rate must be between 0 and 1, got {value!r}")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> int:
        if isinstance(value, str):
            level = logging.getLevelName(value.upper())
            if not isinstance(level, int):
                raise ConfigurationError(f"unknown log level: {value!r}")
            return level
        return value

    @field_validator("json_library")
    @classmethod
    def _validate_json_library(cls, value: Any) -> JSONEncoder:
        if not isinstance(value, JSONEncoder):
            raise ConfigurationError(f"json_library must expose encode(value), got {value!r}")
        return value


_config: Config = Config()


def configure(**options: Any) -> Config:
    """Replace the process-wide configuration.

    Args:
        **options: ``Config`` fields

    Returns:
        The installed config
    """
    global _config

    _config = Config(**options)

    # The default client caches a transport built from the old DSN.
    from faultline import client

    client.reset_default_client()
    return _config


def get_config() -> Config:
    return _config
