import logging
import logging.config
import re

REDACTED = "[REDACTED]"

# (pattern, replacement) pairs applied in order.
_REDACTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?i)\b((?:access|refresh|id)_token\s*[=:]\s*)([^,\s]+)"), rf"\1{REDACTED}"),
    (re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"), REDACTED),
    (re.compile(r"(?<!\d)\+\d{10,15}\b"), REDACTED),
    (re.compile(r"\b(?:\+1[-.\s]?)?(?:\(?\d{3}\)?[-.\s]?)\d{3}[-.\s]?\d{4}\b"), REDACTED),
]


def redact_contacts(text: str) -> str:
    """Mask e-mail addresses, phone numbers and OAuth tokens in *text*."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class ContactSafeFilter(logging.Filter):
    """Redact recipient contact details and OAuth tokens from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_contacts(record.msg)

        if isinstance(record.args, tuple):
            record.args = tuple(redact_contacts(a) if isinstance(a, str) else a for a in record.args)
        elif isinstance(record.args, dict):
            record.args = {
                key: redact_contacts(value) if isinstance(value, str) else value
                for key, value in record.args.items()
            }
        return True


def build_logging_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"contact_safe": {"()": ContactSafeFilter}},
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["contact_safe"],
            }
        },
        "root": {"handlers": ["console"], "level": level.upper()},
        "loggers": {
            # SQL echo would print recipient rows verbatim.
            "sqlalchemy.engine": {"level": "WARNING"},
            "uvicorn.access": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging() -> None:
    from magic_yarn.core.settings import get_settings

    logging.config.dictConfig(build_logging_config(get_settings().log_level))
