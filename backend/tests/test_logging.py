"""
Tests for structured logging.
"""

import json
import logging

from shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    get_logger,
    mask_email,
)


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _record(**context):
    logger = get_logger("tests.logging")
    handler = _Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        logger.info("Department created", **context)
    finally:
        logger.removeHandler(handler)
    return handler.records[0]


class TestStructuredLogger:
    def test_keyword_context_is_attached(self):
        record = _record(entity_id="d1", company_id="company-1")
        assert record.extra_data == {"entity_id": "d1", "company_id": "company-1"}

    def test_no_context(self):
        assert _record().extra_data is None

    def test_exc_info_still_works(self):
        logger = get_logger("tests.logging.errors")
        handler = _Capture()
        logger.addHandler(handler)
        try:
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.error("Commit failed", exc_info=True, entity="Department")
        finally:
            logger.removeHandler(handler)

        record = handler.records[0]
        assert record.exc_info[0] is RuntimeError
        assert record.extra_data == {"entity": "Department"}


class TestFormatters:
    def test_json_lifts_tenant_and_request_id(self):
        record = _record(entity_id="d1", company_id="company-1")
        record.request_id = "req-42"

        line = json.loads(StructuredFormatter().format(record))

        assert line["message"] == "Department created"
        assert line["tenant"] == "company-1"
        assert line["request_id"] == "req-42"
        assert line["data"] == {"entity_id": "d1"}

    def test_json_omits_unbound_request_id(self):
        record = _record()
        record.request_id = "-"

        line = json.loads(StructuredFormatter().format(record))

        assert "request_id" not in line
        assert "data" not in line

    def test_development_line_lists_context(self):
        record = _record(entity_id="d1")
        record.request_id = "abcdef123456"

        line = DevelopmentFormatter().format(record)

        assert "abcdef12" in line
        assert "tests.logging: Department created" in line
        assert line.endswith("entity_id=d1")


class TestMaskEmail:
    def test_masks_local_part(self):
        assert mask_email("admin@acme.test") == "ad***@acme.test"

    def test_short_local_part(self):
        assert mask_email("jo@acme.test") == "j***@acme.test"

    def test_missing_or_invalid(self):
        assert mask_email(None) == "<no-email>"
        assert mask_email("not-an-email") == "***@invalid"
