"""The event submission pipeline.

``send_event`` runs sampling, the ``before_send_event`` hook, rendering and
dispatch, then the ``after_send_event`` hook, and returns a ``SendResult``.
Suppressed events never reach the renderer or the transport.
"""

import logging
import random
from collections.abc import Mapping
from threading import Lock
from typing import Any

from faultline.config import Config, get_config
from faultline.errors import (
    ConfigurationError,
    DeliveryError,
    RequestFailure,
    describe_delivery_error,
)
from faultline.models import Event
from faultline.render import render_event as _render
from faultline.results import SendResult, SendResultMode
from faultline.sender import Sender
from faultline.state import LastEventCell, last_event
from faultline.transports import Transport, create_transport

logger = logging.getLogger(__name__)

LOGGER_SOURCE = "logger"

RETIRED_ASYNC_MESSAGE = (
    "the 'async' send_result mode is not supported anymore. Instead, run "
    "send_event(..., result='sync') in a thread or task of your own; the "
    "effect is exactly the same."
)


class Client:
    """Decides on, transforms and dispatches events.

    Every collaborator can be injected. Without a ``config`` the client
    reads the process-wide one on each submission; without a ``transport``
    it builds one from ``config.dsn``.
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: Transport | None = None,
        sender: Sender | None = None,
        last_event_cell: LastEventCell | None = None,
        rng: random.Random | None = None,
    ):
        self._config = config
        self._transport = transport
        self._sender = sender
        self.last_event = last_event_cell or last_event
        self.rng = rng or random.Random()
        self._dsn_transport: tuple[str | None, Transport] | None = None
        self._lock = Lock()

    @property
    def config(self) -> Config:
        return self._config or get_config()

    def send_event(
        self,
        event: Event,
        *,
        result: SendResultMode | str | None = None,
        sample_rate: float | None = None,
        request_retries: int | None = None,
    ) -> SendResult:
        """Submit ``event``.

        Args:
            event: The event to send
            result: Completion mode override
            sample_rate: Sample rate override, 0 to 1 inclusive
            request_retries: Retry count override passed to the transport

        Returns:
            ``SendResult`` for the submission. Delivery errors are returned,
            not raised.

        Raises:
            ConfigurationError: For the retired ``async`` mode or an invalid override
        """
        config = self.config
        try:
            mode = SendResultMode(result) if result is not None else config.send_result
        except ValueError as e:
            raise ConfigurationError(f"unknown send_result mode: {result!r}") from e
        rate = config.sample_rate if sample_rate is None else sample_rate
        retries = config.request_retries if request_retries is None else request_retries

        if not 0 <= rate <= 1:
            raise ConfigurationError(f"sample_rate must be between 0 and 1, got {rate!r}")

        if not self.sample(rate):
            return SendResult.unsampled()

        event = self._call_before_send(event, config)
        if event is None:
            return SendResult.excluded()

        send_result = self._encode_and_send(event, mode, retries, config)

        if config.after_send_event is not None:
            config.after_send_event.invoke(event, send_result)

        return send_result

    def render_event(self, event: Event) -> dict[str, Any]:
        """Render ``event`` into its transport-ready payload without sending it."""
        return _render(event, self.config.json_library)

    def sample(self, rate: float) -> bool:
        if rate == 1:
            return True
        if rate == 0:
            return False
        return self.rng.random() < rate

    def _call_before_send(self, event: Event, config: Config) -> Event | None:
        hook = config.before_send_event
        if hook is None:
            return event

        returned = hook.invoke(event)
        if not returned:
            return None
        if isinstance(returned, Event):
            return returned
        if isinstance(returned, Mapping):
            return Event.model_validate(returned)
        raise ConfigurationError(
            f"before_send_event must return an Event, a mapping or a falsy value, got {returned!r}"
        )

    def _encode_and_send(
        self, event: Event, mode: SendResultMode, retries: int, config: Config
    ) -> SendResult:
        if mode is SendResultMode.ASYNC:
            raise ConfigurationError(RETIRED_ASYNC_MESSAGE)

        payload = _render(event, config.json_library)

        if mode is SendResultMode.NONE:
            self.get_sender(config).send_async(payload, event.source)
            self.last_event.record(event.event_id, event.source)
            return SendResult.sent("")

        try:
            event_id = self.get_transport(config).post([payload], retries)
        except DeliveryError as e:
            send_result = SendResult.failed(e)
        except Exception as e:
            # Injected transports may raise anything; a failed send must not crash the caller.
            send_result = SendResult.failed(RequestFailure(e))
        else:
            self.last_event.record(event.event_id, event.source)
            send_result = SendResult.sent(event_id or event.event_id)

        self._log_send_result(send_result, event.source, config)
        return send_result

    def get_transport(self, config: Config | None = None) -> Transport:
        """Return the injected transport, or the one for the configured DSN.

        Raises:
            InvalidDSNError: If no transport was injected and the DSN is unusable
        """
        if self._transport is not None:
            return self._transport

        config = config or self.config
        with self._lock:
            cached = self._dsn_transport
            if cached is None or cached[0] != config.dsn:
                cached = (config.dsn, create_transport(config.dsn, json_library=config.json_library))
                self._dsn_transport = cached
        return cached[1]

    def get_sender(self, config: Config | None = None) -> Sender:
        config = config or self.config
        with self._lock:
            if self._sender is None:
                self._sender = Sender(
                    transport_provider=self.get_transport,
                    request_retries=config.request_retries,
                    on_failure=lambda error, batch: self._log_async_failure(error, batch, self.config),
                )
        return self._sender

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for fire-and-forget events to be posted."""
        if self._sender is None:
            return True
        return self._sender.flush(timeout)

    def close(self, timeout: float | None = 5.0) -> None:
        if self._sender is not None:
            self._sender.stop(timeout)
        transport = self._transport or (self._dsn_transport[1] if self._dsn_transport else None)
        if transport is not None:
            transport.stop()

    def _log_send_result(self, send_result: SendResult, source: str | None, config: Config) -> None:
        # Logging failures of logger-originated events would feed back into the logger.
        if send_result.error is None or source == LOGGER_SOURCE:
            return
        logger.log(
            config.log_level,
            "Failed to send event. %s",
            describe_delivery_error(send_result.error),
        )

    def _log_async_failure(self, error: DeliveryError, batch, config: Config) -> None:
        for _payload, source in batch:
            self._log_send_result(SendResult.failed(error), source, config)


_default_client: Client | None = None
_default_client_lock = Lock()


def get_default_client() -> Client:
    global _default_client

    with _default_client_lock:
        if _default_client is None:
            _default_client = Client()
        return _default_client


def reset_default_client() -> None:
    """Drop the default client, flushing any events it still holds."""
    global _default_client

    with _default_client_lock:
        client, _default_client = _default_client, None
    if client is not None:
        client.close()


def send_event(event: Event, **overrides: Any) -> SendResult:
    """Submit ``event`` through the default client.

    See ``Client.send_event`` for the accepted overrides.
    """
    return get_default_client().send_event(event, **overrides)


def render_event(event: Event) -> dict[str, Any]:
    """Render ``event`` with the process-wide configuration."""
    return get_default_client().render_event(event)
