"""
Logging - Application logging configuration and disk persistence.

Provides:
- Python logging configuration with console and optional file output
- Log persistence to daily files: gauss-YYYY-MM-DD.log
- Automatic cleanup of old log files
- Redaction of anything that looks like a private key or recovery phrase
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
import logging
import re

from mnemonic import Mnemonic

from utils import get_logs_dir

REDACTED = "[REDACTED]"

_HEX_SECRET = re.compile(r"\b(0x)?[0-9a-fA-F]{64}\b")
_WORD_RUN = re.compile(r"\b[a-z]+(?:\s+[a-z]+){11,}\b", re.IGNORECASE)
_WORDSET = frozenset(Mnemonic("english").wordlist)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def redact_secrets(text: str) -> str:
    """Mask 32-byte hex strings and runs of 12+ BIP-39 words."""
    text = _HEX_SECRET.sub(REDACTED, text)

    def _mask_words(match: re.Match) -> str:
        words = match.group(0).split()
        out, run = [], []
        masked = False
        for word in words + [None]:
            if word is not None and word.lower() in _WORDSET:
                run.append(word)
                continue
            if len(run) >= 12:
                out.append(REDACTED)
                masked = True
            else:
                out.extend(run)
            run = []
            if word is not None:
                out.append(word)
        return " ".join(out) if masked else match.group(0)

    return _WORD_RUN.sub(_mask_words, text)


class SecretRedactionFilter(logging.Filter):
    """Rewrites records (message and traceback) so secrets never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact_secrets(record.exc_text)
        if record.stack_info:
            record.stack_info = redact_secrets(record.stack_info)
        return True


def configure_logging(level: int = logging.INFO, retention_days: int = 0) -> None:
    """
    Configure Python logging for the application.

    Sets up a root logger with console output, plus a daily log file when
    retention_days > 0. Every handler redacts secrets.

    Args:
        level: Logging level (default: INFO)
        retention_days: Keep log files this many days (0 = no file logging)
    """
    root_logger = logging.getLogger()

    # Only configure if not already configured
    if root_logger.handlers:
        return

    root_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    # Console handler with simple format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SecretRedactionFilter())
    root_logger.addHandler(console_handler)

    if retention_days > 0:
        file_handler = logging.FileHandler(get_log_file_path(), encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        file_handler.addFilter(SecretRedactionFilter())
        root_logger.addHandler(file_handler)
        cleanup_old_logs(retention_days)


def get_log_file_path(date: Optional[datetime] = None) -> Path:
    """Get the log file path for a specific date (defaults to today)."""
    if date is None:
        date = datetime.now()
    filename = f"gauss-{date.strftime('%Y-%m-%d')}.log"
    return get_logs_dir() / filename


def cleanup_old_logs(retention_days: int) -> int:
    """
    Delete log files older than retention_days.

    Args:
        retention_days: Delete files older than this (0 = delete all but today)

    Returns:
        Number of files deleted
    """
    if retention_days < 0:
        return 0

    logs_dir = get_logs_dir()
    cutoff_date = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0) \
        - timedelta(days=retention_days)
    deleted_count = 0

    for file_path in logs_dir.glob("gauss-*.log"):
        # Parse date from filename
        try:
            date_str = file_path.stem.replace("gauss-", "")
            file_date = datetime.strptime(date_str, "%Y-%m-%d")

            if file_date < cutoff_date:
                file_path.unlink()
                deleted_count += 1
        except (ValueError, OSError):
            # Skip files that don't match expected format
            pass

    return deleted_count
