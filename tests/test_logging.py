"""
Tests for log redaction and log file housekeeping.
"""

import logging
import sys
from datetime import datetime, timedelta

import pytest

from services.logging import (
    REDACTED,
    SecretRedactionFilter,
    cleanup_old_logs,
    get_log_file_path,
    redact_secrets,
)
from utils import get_logs_dir

from conftest import ABANDON_MNEMONIC, SAMPLE_ADDRESS, SAMPLE_PRIVATE_KEY


class TestRedactSecrets:

    def test_private_key(self):
        text = redact_secrets(f"key={SAMPLE_PRIVATE_KEY} done")
        assert SAMPLE_PRIVATE_KEY[2:] not in text
        assert text == f"key={REDACTED} done"

    def test_unprefixed_private_key(self):
        assert redact_secrets(SAMPLE_PRIVATE_KEY[2:]) == REDACTED

    def test_mnemonic(self):
        text = redact_secrets(f"phrase: {ABANDON_MNEMONIC}")
        assert "abandon" not in text
        assert REDACTED in text

    def test_address_untouched(self):
        line = f"Signed for {SAMPLE_ADDRESS}"
        assert redact_secrets(line) == line

    def test_ordinary_sentence_untouched(self):
        line = "the quick brown fox jumps over the lazy dog and then goes home to sleep"
        assert redact_secrets(line) == line

    def test_short_word_runs_untouched(self):
        line = "abandon ability able about above absent"
        assert redact_secrets(line) == line

    def test_upper_case_mnemonic(self):
        text = redact_secrets(f"phrase: {ABANDON_MNEMONIC.upper()}")
        assert "ABANDON" not in text
        assert REDACTED in text

    def test_long_unmatched_run_keeps_whitespace(self):
        line = "first line of text\nsecond line of text\nthird line of text\nfourth line"
        assert redact_secrets(line) == line


class TestSecretRedactionFilter:

    def _record(self, msg, args=None):
        return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)

    def test_rewrites_formatted_message(self):
        record = self._record("key %s", (SAMPLE_PRIVATE_KEY,))
        assert SecretRedactionFilter().filter(record)
        assert record.getMessage() == f"key {REDACTED}"

    def test_clean_record_unchanged(self):
        record = self._record("balance %s", ("1.5",))
        SecretRedactionFilter().filter(record)
        assert record.args == ("1.5",)
        assert record.getMessage() == "balance 1.5"

    def test_rewrites_traceback(self):
        try:
            raise ValueError(f"bad key {SAMPLE_PRIVATE_KEY}")
        except ValueError:
            record = logging.LogRecord("test", logging.ERROR, __file__, 1,
                                       "failed", None, sys.exc_info())
        SecretRedactionFilter().filter(record)
        assert SAMPLE_PRIVATE_KEY[2:] not in record.exc_text
        assert REDACTED in record.exc_text
        assert "ValueError" in record.exc_text

    def test_exception_logged_through_handler(self, caplog):
        logger = logging.getLogger("gauss.redaction-test")
        redaction = SecretRedactionFilter()
        caplog.handler.addFilter(redaction)
        try:
            try:
                raise RuntimeError(f"phrase {ABANDON_MNEMONIC}")
            except RuntimeError:
                logger.exception("import failed")
        finally:
            caplog.handler.removeFilter(redaction)
        assert "abandon" not in caplog.text
        assert "import failed" in caplog.text

    def test_handler_output(self, caplog):
        logger = logging.getLogger("gauss.redaction-test")
        redaction = SecretRedactionFilter()
        caplog.handler.addFilter(redaction)
        try:
            logger.warning(f"leaked {ABANDON_MNEMONIC}")
        finally:
            caplog.handler.removeFilter(redaction)
        assert "abandon" not in caplog.text


class TestLogFiles:

    def test_file_name(self):
        path = get_log_file_path(datetime(2024, 3, 9))
        assert path.name == "gauss-2024-03-09.log"
        assert path.parent == get_logs_dir()

    @pytest.mark.parametrize("retention,expected_left", [(0, 1), (3, 2), (30, 3)])
    def test_cleanup(self, retention, expected_left):
        today = datetime.now()
        for days_ago in (0, 2, 10):
            get_log_file_path(today - timedelta(days=days_ago)).write_text("x")
        (get_logs_dir() / "gauss-notadate.log").write_text("x")

        deleted = cleanup_old_logs(retention)
        remaining = sorted(p.name for p in get_logs_dir().glob("gauss-*-*-*.log"))
        assert len(remaining) == expected_left
        assert deleted == 3 - expected_left
        assert (get_logs_dir() / "gauss-notadate.log").exists()
