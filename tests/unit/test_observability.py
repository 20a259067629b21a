"""Tests for request correlation and the Prometheus exposition."""

from uid_bot.observability.logging import _add_request_id, bind_request_id, request_id_ctx
from uid_bot.observability.metrics import UNITS_TOTAL, metrics_text


class TestRequestId:
    def test_bind_generates_and_resets(self):
        assert request_id_ctx.get() is None
        with bind_request_id() as rid:
            assert request_id_ctx.get() == rid
            assert len(rid) == 32
        assert request_id_ctx.get() is None

    def test_bind_accepts_explicit_id(self):
        with bind_request_id("abc") as rid:
            assert rid == "abc"

    def test_processor_injects_request_id(self):
        with bind_request_id("req-1"):
            event = _add_request_id(None, "info", {"event": "x"})
        assert event["request_id"] == "req-1"

    def test_processor_leaves_event_alone_outside_a_request(self):
        assert _add_request_id(None, "info", {"event": "x"}) == {"event": "x"}


def test_metrics_text_exposes_counters():
    UNITS_TOTAL.labels(outcome="field_complete").inc()

    body, content_type = metrics_text()

    assert content_type.startswith("text/plain")
    assert b'uid_bot_units_total{outcome="field_complete"}' in body
