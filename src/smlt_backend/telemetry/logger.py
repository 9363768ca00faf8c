"""Root logger setup and masking of caller input before it is logged."""

from __future__ import annotations

import logging
import re
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
MAX_LOGGED_CHARS = 120

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.[a-zA-Z]{2,}")
_LONG_NUMBER_RE = re.compile(r"\b\d{4,}\b")


def sanitize_text(value: Optional[str]) -> str:
    """Mask emails and long numbers in a document id or filter expression.

    Both come straight from request parameters, so the result is also cut to
    ``MAX_LOGGED_CHARS``.
    """
    if not value:
        return ""
    masked = _LONG_NUMBER_RE.sub("<num>", _EMAIL_RE.sub("<email>", str(value)))
    if len(masked) > MAX_LOGGED_CHARS:
        masked = masked[:MAX_LOGGED_CHARS] + "..."
    return masked


def setup_logging(level: Optional[str] = None) -> None:
    """Apply the telemetry log level and format to the root logger.

    Handlers installed earlier (uvicorn, pytest) are re-levelled and
    re-formatted rather than duplicated. Unknown level names fall back to INFO.
    """
    desired_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=desired_level, format=LOG_FORMAT)
        return

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in root_logger.handlers:
        handler.setLevel(desired_level)
        handler.setFormatter(formatter)
    root_logger.setLevel(desired_level)
