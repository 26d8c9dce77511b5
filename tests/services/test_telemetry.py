"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time

import pytest

from transmute.services.result import ServiceResult
from transmute.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "children" not in d
        assert "annotations" not in d

    def test_to_dict_with_children_and_annotations(self) -> None:
        root = Span(name="root")
        child = Span(name="child", parent=root)
        root.children.append(child)
        child.annotate("target", "list")
        child.end()
        root.end()
        d = root.to_dict()
        assert d["children"][0]["name"] == "child"
        assert d["children"][0]["annotations"] == {"target": "list"}


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("test") as span:
            assert span is None

    def test_no_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("test") as span:
            assert span is None

    def test_nested_spans(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("a"):
                with trace_span("b") as inner:
                    assert get_current_span() is inner
            assert [c.name for c in root.children] == ["a"]
            assert [c.name for c in root.children[0].children] == ["b"]
            assert root.children[0].end_time is not None
        finally:
            _current_span.reset(token)


class TestTraced:
    def test_noop_when_disabled(self) -> None:
        @traced
        def op() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        assert op().meta is None

    def test_injects_meta_when_enabled(self) -> None:
        @traced
        def op() -> ServiceResult:
            with trace_span("step"):
                pass
            return ServiceResult(ok=True, op="test", meta={"existing": 1})

        enable_telemetry()
        result = op()
        assert result.meta is not None
        assert result.meta["existing"] == 1
        telemetry = result.meta["telemetry"]
        assert telemetry["name"].endswith("op")
        assert telemetry["children"][0]["name"] == "step"

    def test_non_service_result_passthrough(self) -> None:
        @traced
        def op() -> str:
            return "hello"

        enable_telemetry()
        assert op() == "hello"

    def test_exception_resets_current_span(self) -> None:
        @traced
        def op() -> ServiceResult:
            raise RuntimeError("boom")

        enable_telemetry()
        with pytest.raises(RuntimeError):
            op()
        assert _current_span.get() is None

    def test_disable(self) -> None:
        enable_telemetry()
        disable_telemetry()
        assert get_current_span() is None
