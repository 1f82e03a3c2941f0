"""Tests for the @traced_engine decorator."""

from recon_engines.tracer import traced_engine


class _Engine:

    @traced_engine("sample_engine", "2.1")
    def combine(self, items, label, extra=()):
        return f"{label}:{len(items) + len(extra)}"


def test_returns_wrapped_result():
    assert _Engine().combine([1, 2], "n") == "n:2"


def test_trace_record(captured_logs):
    _Engine().combine([1, 2, 3], "n", extra=(4,))

    (trace,) = [r for r in captured_logs() if r["message"] == "RECON_ENGINE_TRACE"]
    assert trace["engine_name"] == "sample_engine"
    assert trace["engine_version"] == "2.1"
    assert trace["function"] == "_Engine.combine"
    assert trace["input_sizes"] == {"items": 3, "extra": 1}
    assert trace["duration_ms"] >= 0


def test_defaults_not_measured(captured_logs):
    _Engine().combine([], "n")

    (trace,) = [r for r in captured_logs() if r["message"] == "RECON_ENGINE_TRACE"]
    assert trace["input_sizes"] == {"items": 0}
