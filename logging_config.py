"""Logging configuration for the application."""

import logging
import re
import sys

# Compact JWS: base64url JSON header (always starts "eyJ"), payload, signature
_TOKEN_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")
REDACTED_TOKEN = "[redacted-token]"


class UploadTokenRedactionFilter(logging.Filter):
    """Replace upload tokens in log messages.

    Tokens are bearer capabilities and travel in URL paths, so access logs
    and error messages would otherwise leak them.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _TOKEN_PATTERN.sub(REDACTED_TOKEN, message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (default: INFO)
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(UploadTokenRedactionFilter())

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
    )
    # Multipart parser is chatty at DEBUG/INFO
    logging.getLogger("multipart").setLevel(logging.WARNING)
    # Access log lines carry the validate-token path
    logging.getLogger("uvicorn.access").addFilter(UploadTokenRedactionFilter())
