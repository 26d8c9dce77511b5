"""Tests for output-mode dispatch."""

from __future__ import annotations

import json

from transmute.output.formatters import OutputSettings, format_diagnostics, format_result
from transmute.services.result import ServiceError, ServiceResult

TELEMETRY = {"name": "TranscodeService.reformat", "duration_ms": 0.5}


def _ok(output: str | None = "[1]") -> ServiceResult:
    data = {} if output is None else {"output": output}
    return ServiceResult(ok=True, op="reformat", data=data, meta={"telemetry": TELEMETRY})


def _error() -> ServiceResult:
    return ServiceResult(
        ok=False,
        op="reformat",
        error=ServiceError(code="PARSE_ERROR", message="Unexpected '}'", detail={"offset": 3}),
    )


class TestFormatResult:
    def test_payload_is_verbatim(self) -> None:
        text = "[\n\t1,\n\t2\n]"
        assert format_result(_ok(text)) == text

    def test_ok_without_output(self) -> None:
        assert format_result(_ok(None)) == "OK: reformat"

    def test_json_mode(self) -> None:
        parsed = json.loads(format_result(_ok(), settings=OutputSettings(json_output=True)))
        assert parsed["ok"] is True
        assert parsed["data"]["output"] == "[1]"
        assert parsed["meta"]["telemetry"]["name"] == "TranscodeService.reformat"

    def test_json_mode_error(self) -> None:
        parsed = json.loads(format_result(_error(), settings=OutputSettings(json_output=True)))
        assert parsed["ok"] is False
        assert parsed["error"]["code"] == "PARSE_ERROR"
        assert parsed["error"]["detail"] == {"offset": 3}

    def test_human_error(self) -> None:
        assert format_result(_error()) == "ERROR  reformat: Unexpected '}'"

    def test_quiet_error(self) -> None:
        output = format_result(_error(), settings=OutputSettings(quiet=True))
        assert output == "ERROR: reformat: Unexpected '}'"

    def test_verbose_error_has_detail(self) -> None:
        output = format_result(_error(), settings=OutputSettings(verbose=True))
        assert "code: PARSE_ERROR" in output
        assert "offset: 3" in output


class TestFormatDiagnostics:
    def test_empty_unless_verbose(self) -> None:
        assert format_diagnostics(_ok(), settings=OutputSettings()) == ""

    def test_empty_in_json_mode(self) -> None:
        settings = OutputSettings(json_output=True, verbose=True)
        assert format_diagnostics(_ok(), settings=settings) == ""

    def test_verbose_renders_meta(self) -> None:
        output = format_diagnostics(_ok(), settings=OutputSettings(verbose=True))
        assert output.startswith("meta:")
        assert "TranscodeService.reformat" in output
