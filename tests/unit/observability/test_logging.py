"""Tests for structured logging and build log output."""

from dataclasses import field, make_dataclass
import io
import json
import logging
from pathlib import Path
import sys

import pytest

from docmapper.builder import SchemaBuilder, build_document_mapping
from docmapper.config import Settings
from docmapper.descriptors import tag
from docmapper.observability import (
    JsonFormatter,
    configure_logging,
    configure_logging_from_settings,
    get_trace_context,
    set_trace_context,
    trace_context,
)

from tests.fixtures.records import Outer, Private, Sample


def _record(msg="test message", level=logging.INFO, name="docmapper.builder"):
    return logging.LogRecord(name=name, level=level, pathname="test.py", lineno=1, msg=msg, args=(), exc_info=None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJsonFormatter:
    def test_format_includes_trace_context(self):
        set_trace_context("ab" * 16, "cd" * 8, record_type="Sample")

        data = json.loads(JsonFormatter().format(_record()))
        trace_context.set(None)

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "docmapper.builder"
        assert data["component"] == "builder"
        assert data["trace_id"] == "ab" * 16
        assert data["span_id"] == "cd" * 8
        assert data["record_type"] == "Sample"
        assert "timestamp" in data

    def test_format_includes_extra_fields(self):
        record = _record()
        record.type_name = "User"
        record.fields = {"b", "a"}
        record.path = Path("/tmp/index")

        data = json.loads(JsonFormatter().format(record))

        assert data["type_name"] == "User"
        assert data["fields"] == ["a", "b"]
        assert data["path"] == "/tmp/index"

    def test_format_truncates_long_values(self):
        record = _record(msg="x" * 5000)
        record.annotation = "y" * 1000

        data = json.loads(JsonFormatter().format(record))

        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["annotation"].endswith("...")
        assert len(data["annotation"]) == JsonFormatter.MAX_EXTRA_LEN + 3

    def test_format_includes_exception(self):
        try:
            raise TypeError("boom")
        except TypeError:
            record = logging.LogRecord("docmapper", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "TypeError: boom" in data["exception"]

    def test_json_default_handles_types_and_sets(self):
        formatter = JsonFormatter()

        assert formatter._json_default(Sample) == "Sample"
        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert sorted(formatter._json_default({1, "a"}), key=str) == [1, "a"]
        assert formatter._json_default(ValueError("bad")) == "bad"


class TestConfigureLogging:
    def test_sets_level_and_json_handler(self, restore_root_logger):
        configure_logging(level="DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_plain_formatter(self, restore_root_logger):
        configure_logging(level="INFO", json_output=False)

        formatter = restore_root_logger.handlers[0].formatter
        assert not isinstance(formatter, JsonFormatter)
        assert "%(asctime)s" in formatter._style._fmt

    def test_logger_level_overrides(self, restore_root_logger):
        configure_logging(level="INFO", logger_levels={"docmapper.builder": "ERROR"})

        assert logging.getLogger("docmapper.builder").level == logging.ERROR
        logging.getLogger("docmapper.builder").setLevel(logging.NOTSET)

    def test_from_settings(self, restore_root_logger):
        configure_logging_from_settings(Settings(log_level="warning", log_json=False))

        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)


class TestBuildLogs:
    def test_skipped_fields_logged_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="docmapper.builder")

        build_document_mapping(Private)

        skipped = [r.getMessage() for r in caplog.records if "Skipped field" in r.getMessage()]
        assert any("'_secret'" in message and "unexported" in message for message in skipped)
        assert len(skipped) == 3

    def test_duplicate_field_key_warns_and_later_field_wins(self, caplog):
        clash = make_dataclass(
            "Clash",
            [
                ("A", str, field(default="", metadata=tag("same"))),
                ("B", int, field(default=0, metadata=tag("same"))),
            ],
        )

        with caplog.at_level(logging.WARNING, logger="docmapper.builder"):
            mapping = build_document_mapping(clash)

        assert mapping.fields["same"].field_type == "number"
        assert any("overrides an earlier field" in r.getMessage() for r in caplog.records)

    def test_build_logs_carry_record_type(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonFormatter())
        builder_logger = logging.getLogger("docmapper.builder")
        builder_logger.addHandler(handler)
        builder_logger.setLevel(logging.DEBUG)
        try:
            SchemaBuilder().build_schema(Sample, Outer)
        finally:
            builder_logger.removeHandler(handler)
            builder_logger.setLevel(logging.NOTSET)

        entries = [json.loads(line) for line in stream.getvalue().splitlines()]
        by_message = {entry["message"]: entry for entry in entries}
        assert by_message["Added mapping for field 'Name': text"]["record_type"] == "Sample"
        assert by_message["Added mapping for field 'Inner.X': number"]["record_type"] == "Outer"
        summary = next(entry for entry in entries if entry["message"].startswith("Built index mapping"))
        assert "record_type" not in summary
        assert "record_type" not in get_trace_context()

    def test_build_summary_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="docmapper.builder"):
            SchemaBuilder().build_schema(Sample)

        assert "Built index mapping for 1 type(s) with 4 field(s)" in caplog.text

    def test_failed_build_logged_as_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="docmapper.builder"), pytest.raises(TypeError):
            SchemaBuilder().build_schema(Sample, "not a record")

        assert "Index mapping build failed" in caplog.text
