import logging
import random
from unittest.mock import Mock

import pytest
from test_helpers import FailingTransport, HookRecorder, Unserializable

import faultline
from faultline.client import Client
from faultline.config import Config
from faultline.errors import (
    ConfigurationError,
    EncodingError,
    InvalidDSNError,
    RequestFailure,
)
from faultline.models import Breadcrumb, Event
from faultline.results import SendResult, SendResultMode, SendStatus
from faultline.state import LastEventCell


class TestSampling:
    def test_rate_one_always_sends(self, make_client, transport):
        client = make_client(sample_rate=1)

        results = [client.send_event(Event()) for _ in range(20)]

        assert all(result.ok for result in results)
        assert len(transport.post_calls) == 20

    def test_rate_zero_never_sends(self, make_client, transport):
        before_send = Mock(side_effect=lambda event: event)
        client = make_client(sample_rate=0, before_send_event=before_send)

        results = [client.send_event(Event()) for _ in range(20)]

        assert all(result.status is SendStatus.UNSAMPLED for result in results)
        before_send.assert_not_called()
        assert transport.post_calls == []

    def test_fractional_rate_converges(self, make_client):
        client = make_client(sample_rate=0.3, seed=1234)

        accepted = sum(client.sample(0.3) for _ in range(10_000))

        assert abs(accepted / 10_000 - 0.3) < 0.03

    def test_draw_happens_per_submission(self, make_client, transport):
        rng = Mock(spec=random.Random)
        rng.random.side_effect = [0.9, 0.1, 0.9]
        client = make_client(sample_rate=0.5)
        client.rng = rng

        statuses = [client.send_event(Event()).status for _ in range(3)]

        assert statuses == [SendStatus.UNSAMPLED, SendStatus.SENT, SendStatus.UNSAMPLED]
        assert rng.random.call_count == 3

    def test_sample_rate_override(self, make_client, transport):
        client = make_client(sample_rate=1)

        assert client.send_event(Event(), sample_rate=0).status is SendStatus.UNSAMPLED
        assert transport.post_calls == []

    def test_invalid_sample_rate_override(self, make_client):
        with pytest.raises(ConfigurationError):
            make_client().send_event(Event(), sample_rate=2)


class TestBeforeSend:
    @pytest.mark.parametrize("returned", [None, False])
    def test_falsy_result_excludes(self, make_client, transport, returned):
        after_send = Mock()
        client = make_client(
            before_send_event=lambda event: returned, after_send_event=after_send
        )

        result = client.send_event(Event())

        assert result == SendResult.excluded()
        assert transport.post_calls == []
        after_send.assert_not_called()

    def test_modified_event_is_delivered_and_observed(self, make_client, transport):
        recorder = HookRecorder()
        original = Event(message="original")
        client = make_client(
            before_send_event=lambda event: event.model_copy(update={"message": "scrubbed"}),
            after_send_event=(recorder, "after_send"),
        )

        result = client.send_event(original)

        assert result.ok
        assert transport.payloads[0]["message"] == "scrubbed"
        observed_event, observed_result = recorder.after_calls[0]
        assert observed_event.message == "scrubbed"
        assert observed_result is result

    def test_receiver_method_hook(self, make_client, transport):
        recorder = HookRecorder()
        client = make_client(before_send_event=(recorder, "before_send"))

        client.send_event(Event(message="hello"))

        assert recorder.before_calls[0].message == "hello"
        assert transport.payloads[0]["message"] == "hello"

    def test_mapping_result_becomes_event(self, make_client, transport):
        client = make_client(before_send_event=lambda event: {"message": "from dict"})

        assert client.send_event(Event()).ok
        assert transport.payloads[0]["message"] == "from dict"

    def test_unexpected_return_type(self, make_client):
        client = make_client(before_send_event=lambda event: 42)

        with pytest.raises(ConfigurationError):
            client.send_event(Event())

    def test_hook_exceptions_propagate(self, make_client, transport):
        def before_send(event):
            raise RuntimeError("hook bug")

        with pytest.raises(RuntimeError, match="hook bug"):
            make_client(before_send_event=before_send).send_event(Event())

        assert transport.post_calls == []


class TestAfterSend:
    def test_receives_event_and_result(self, make_client):
        after_send = Mock(return_value="ignored")
        client = make_client(after_send_event=after_send)
        event = Event()

        result = client.send_event(event)

        after_send.assert_called_once_with(event, result)
        assert result == SendResult.sent(event.event_id)

    def test_called_with_failed_result(self, make_client):
        after_send = Mock()
        client = make_client(transport=FailingTransport(), after_send_event=after_send)

        result = client.send_event(Event())

        assert after_send.call_args.args[1] is result
        assert result.status is SendStatus.FAILED

    def test_exceptions_propagate(self, make_client):
        def after_send(event, result):
            raise RuntimeError("observer bug")

        with pytest.raises(RuntimeError, match="observer bug"):
            make_client(after_send_event=after_send).send_event(Event())


class TestSyncDispatch:
    def test_success_records_last_event(self, make_client, transport, last_event_cell):
        event = Event(source="manual")

        result = make_client().send_event(event)

        assert result.ok
        assert result.event_id == event.event_id
        assert last_event_cell.get() == (event.event_id, "manual")

    def test_payload_is_rendered_and_sanitized(self, make_client, transport):
        make_client().send_event(Event(extra={"obj": Unserializable()}))

        assert transport.payloads[0]["extra"] == {"obj": "<Unserializable thing>"}

    def test_cyclic_extra_is_sent(self, make_client, transport):
        loop = ["start"]
        loop.append(loop)

        result = make_client().send_event(Event(extra={"loop": loop}))

        assert result.ok
        assert transport.payloads[0]["extra"] == {"loop": ["start", "['start', [...]]"]}

    def test_retries_passed_to_transport(self, make_client, transport):
        client = make_client(request_retries=2)

        client.send_event(Event())
        client.send_event(Event(), request_retries=0)

        assert [retries for _, retries in transport.post_calls] == [2, 0]

    def test_failure_returns_result_and_logs(self, make_client, last_event_cell, caplog):
        client = make_client(transport=FailingTransport(), request_retries=1)

        with caplog.at_level(logging.WARNING, logger="faultline.client"):
            result = client.send_event(Event())

        assert result.status is SendStatus.FAILED
        assert isinstance(result.error, RequestFailure)
        assert last_event_cell.get() is None
        assert "Failed to send event. " in caplog.text
        assert "ConnectionError" in caplog.text

    def test_failure_logged_at_configured_level(self, make_client, caplog):
        client = make_client(transport=FailingTransport(), log_level="error")

        with caplog.at_level(logging.DEBUG, logger="faultline.client"):
            client.send_event(Event())

        records = [r for r in caplog.records if r.name == "faultline.client"]
        assert [r.levelno for r in records] == [logging.ERROR]

    def test_logger_events_are_not_logged(self, make_client, caplog):
        client = make_client(transport=FailingTransport())

        with caplog.at_level(logging.DEBUG, logger="faultline.client"):
            result = client.send_event(Event(source="logger"))

        assert result.status is SendStatus.FAILED
        assert not [r for r in caplog.records if r.name == "faultline.client"]

    def test_encoding_failure(self, make_client, caplog):
        class RejectingEncoder:
            def encode(self, value):
                raise ValueError("cannot encode")

        transport = FailingTransport(failures=0, json_library=RejectingEncoder())
        client = make_client(transport=transport)

        with caplog.at_level(logging.WARNING, logger="faultline.client"):
            result = client.send_event(Event())

        assert isinstance(result.error, EncodingError)
        assert transport.attempts == 0
        assert "Unable to encode JSON event" in caplog.text

    def test_missing_dsn(self, last_event_cell, caplog):
        client = Client(config=Config(), last_event_cell=last_event_cell)

        with caplog.at_level(logging.WARNING, logger="faultline.client"):
            result = client.send_event(Event())

        assert isinstance(result.error, InvalidDSNError)
        assert "Cannot send event because of invalid DSN" in caplog.text

    def test_transport_built_from_dsn(self, capsys, last_event_cell):
        client = Client(config=Config(dsn="stdout://"), last_event_cell=last_event_cell)
        event = Event(message="hello terminal")

        assert client.send_event(event).ok
        assert "hello terminal" in capsys.readouterr().out


class TestFireAndForget:
    def test_returns_placeholder_and_records_last_event(self, make_client, transport, last_event_cell):
        client = make_client(send_result="none")
        event = Event()

        result = client.send_event(event)
        assert client.flush(timeout=5)

        assert result == SendResult.sent("")
        assert last_event_cell.get() == (event.event_id, None)
        assert transport.payloads[0]["event_id"] == event.event_id
        client.close()

    def test_mode_override(self, make_client, transport):
        client = make_client()
        sender = Mock()
        client._sender = sender

        result = client.send_event(Event(message="queued"), result=SendResultMode.NONE)

        assert result.event_id == ""
        payload, source = sender.send_async.call_args.args
        assert payload["message"] == "queued"
        assert transport.post_calls == []

    def test_failures_logged_from_worker(self, make_client, caplog):
        client = make_client(transport=FailingTransport(), send_result="none", request_retries=0)

        with caplog.at_level(logging.WARNING, logger="faultline.client"):
            assert client.send_event(Event()).ok
            client.flush(timeout=5)

        assert "Failed to send event. " in caplog.text
        client.close()


class TestRetiredAsyncMode:
    def test_raises_without_transport_call(self, make_client, transport, last_event_cell):
        with pytest.raises(ConfigurationError, match="not supported anymore"):
            make_client(send_result="async").send_event(Event())

        assert transport.post_calls == []
        assert last_event_cell.get() is None

    def test_override_raises(self, make_client):
        with pytest.raises(ConfigurationError):
            make_client().send_event(Event(), result="async")

    def test_unknown_mode(self, make_client):
        with pytest.raises(ConfigurationError):
            make_client().send_event(Event(), result="eventually")


class TestModuleLevelApi:
    def test_send_event_uses_process_config(self, capsys):
        faultline.configure(dsn="stdout://", sample_rate=1)
        event = Event(message="module level")

        result = faultline.send_event(event)

        assert result.ok
        assert faultline.last_event_id() == event.event_id
        assert "module level" in capsys.readouterr().out

    def test_send_event_unsampled(self):
        faultline.configure(dsn="stdout://", sample_rate=0)

        assert faultline.send_event(Event()).status is SendStatus.UNSAMPLED
        assert faultline.last_event_id() is None

    def test_render_event(self, sample_event):
        payload = faultline.render_event(sample_event)

        assert payload["message"] == "Something went wrong"
        assert payload["exception"][0]["stacktrace"]["frames"][0]["function"] == "main"

    def test_client_without_config_reads_process_config(self, transport):
        client = Client(transport=transport, last_event_cell=LastEventCell())

        faultline.configure(sample_rate=0)

        assert client.send_event(Event()).status is SendStatus.UNSAMPLED


class TestFireAndForgetEncoding:
    def test_bad_event_does_not_drop_its_neighbours(self, make_client, transport, caplog):
        client = make_client(send_result="none")
        events = [Event(message="one"), Event(message="two"), Event(message="three")]
        bad = Event(breadcrumbs=[Breadcrumb(data={"obj": object()})])

        with caplog.at_level(logging.WARNING, logger="faultline.client"):
            for event in [events[0], bad, events[1], events[2]]:
                assert client.send_event(event).ok
            assert client.flush(timeout=5)

        delivered = {payload["event_id"] for payload in transport.payloads}
        assert delivered == {event.event_id for event in events}
        assert caplog.text.count("Unable to encode JSON event") == 1
        client.close()
