"""Unit tests for the per-session error logger and log set-up."""

from __future__ import annotations

import json
import logging

import pytest

from webrobot.monitoring import ErrorLogger, JsonFormatter, configure_logging, normalize_indent, summarize
from webrobot.pipeline import PipelineOptions, Step, fail, run_pipeline


class TestTextHelpers:
    def test_normalize_indent_strips_common_indent(self) -> None:
        text = "Step(lambda r: (\n        a,\n            b,\n        ))"
        assert normalize_indent(text) == "Step(lambda r: (\na,\n    b,\n))"

    def test_normalize_indent_without_indented_lines(self) -> None:
        assert normalize_indent("one\ntwo") == "one\ntwo"

    def test_summarize_single_line(self) -> None:
        assert summarize("  only line  ") == "only line"

    def test_summarize_multi_line(self) -> None:
        assert summarize("\nfirst\nsecond\n") == "first ..."

    def test_summarize_empty(self) -> None:
        assert summarize("  \n ") == ""


class TestErrorLogger:
    """Deduplicated reporting through nested pipelines."""

    @pytest.mark.anyio
    async def test_first_report_full_then_echoes(self, caplog) -> None:
        errors = ErrorLogger(tag="t1")

        async def inner(r):
            return await run_pipeline(
                [Step(lambda r: fail(ValueError("bad value")), label="innermost step")],
                errors.wrap(PipelineOptions(label="inner")),
            )

        async def middle(r):
            return await run_pipeline([Step(inner, label="middle step")], errors.wrap(PipelineOptions(label="middle")))

        with caplog.at_level(logging.ERROR, logger="webrobot.errors.t1"):
            with pytest.raises(ValueError):
                await run_pipeline([Step(middle, label="outer step")], errors.wrap(PipelineOptions(label="outer")))

        messages = [rec.getMessage() for rec in caplog.records if rec.name == "webrobot.errors.t1"]
        assert len(messages) == 3
        assert messages[0].startswith("Got error doing innermost step!")
        assert "ValueError: bad value" in messages[0]
        assert messages[1] == "-> middle step"
        assert messages[2] == "-> outer step"

    @pytest.mark.anyio
    async def test_sessions_do_not_share_seen_errors(self, caplog) -> None:
        shared = RuntimeError("shared")
        first, second = ErrorLogger(tag="s1"), ErrorLogger(tag="s2")

        with caplog.at_level(logging.ERROR):
            for errors in (first, second):
                with pytest.raises(RuntimeError):
                    await run_pipeline([Step(lambda r: fail(shared), label="step")], errors.wrap())

        full = [rec for rec in caplog.records if rec.getMessage().startswith("Got error doing")]
        assert {rec.name for rec in full} == {"webrobot.errors.s1", "webrobot.errors.s2"}
        assert first.has_seen(shared)
        assert second.has_seen(shared)

    @pytest.mark.anyio
    async def test_expected_errors_are_not_logged(self, caplog) -> None:
        errors = ErrorLogger(tag="quiet", expected=[LookupError])

        with caplog.at_level(logging.ERROR, logger="webrobot.errors.quiet"):
            with pytest.raises(KeyError):
                await run_pipeline([Step(lambda r: fail(KeyError("k")))], errors.wrap())

        assert not caplog.records
        assert not errors.has_seen(KeyError("k"))

    def test_chained_errors_share_root(self) -> None:
        errors = ErrorLogger(tag="chain")
        root = OSError("disk")
        try:
            try:
                raise root
            except OSError as exc:
                raise RuntimeError("wrapped") from exc
        except RuntimeError as wrapped:
            failure_a = _failure(root)
            failure_b = _failure(wrapped)

        assert errors.report(failure_a) is True
        assert errors.report(failure_b) is False

    def test_clear_forgets_errors(self) -> None:
        errors = ErrorLogger()
        err = ValueError("x")
        errors.report(_failure(err))
        errors.clear()
        assert not errors.has_seen(err)
        assert len(errors.tag) == 8

    def test_wrap_keeps_caller_hook(self) -> None:
        def own_hook(failure):
            return None

        options = ErrorLogger().wrap(PipelineOptions(label="x", on_error=own_hook))
        assert options.on_error is own_hook

    def test_wrap_installs_report(self) -> None:
        errors = ErrorLogger()
        options = errors.wrap()
        assert options.on_error == errors.report


def _failure(error: BaseException):
    from webrobot.pipeline import ResultRegister, StepFailure

    return StepFailure(0, Step(lambda r: None, label="step"), error, ResultRegister().view())


class TestConfigureLogging:
    def test_plain_format(self) -> None:
        configure_logging("debug")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("asyncio").level == logging.WARNING

    def test_json_format(self) -> None:
        configure_logging("WARNING", json_format=True)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_json_formatter_output(self) -> None:
        record = logging.LogRecord("webrobot.test", logging.INFO, __file__, 1, "hello %s", ("there",), None)
        entry = json.loads(JsonFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["message"] == "hello there"
        assert entry["logger"] == "webrobot.test"
        assert "session" not in entry

    @pytest.mark.anyio
    async def test_json_formatter_session_and_steps(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            await run_pipeline([Step(lambda r: fail(ValueError("bad")), label="type email")])
        err = exc_info.value
        record = logging.LogRecord(
            "webrobot.errors.s1", logging.ERROR, __file__, 1, "boom", (), (type(err), err, err.__traceback__)
        )

        entry = json.loads(JsonFormatter().format(record))

        assert entry["session"] == "s1"
        assert entry["steps"] == [[0, "type email"]]
        assert "ValueError: bad" in entry["exception"]

    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging("chatty")
        assert logging.getLogger().level == logging.INFO
