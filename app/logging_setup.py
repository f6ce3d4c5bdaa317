# app/logging_setup.py
import logging
import re

log = logging.getLogger("uvicorn.error")

_REDACT_PATTERNS = [
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-_\.=]+", re.IGNORECASE),
    re.compile(
        r"((?:authorization|cookie|password|token|secret|api_?key)[\"']?\s*[:=]\s*[\"']?)([^\s,;\"'}]+)",
        re.IGNORECASE,
    ),
]


def redact(text: str) -> str:
    for pattern in _REDACT_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + "***", text)
    return text


class RedactSecretsFilter(logging.Filter):
    """Masque tokens et secrets avant qu'ils n'arrivent dans les logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = ()
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log.setLevel(level)
    if not any(isinstance(f, RedactSecretsFilter) for f in log.filters):
        log.addFilter(RedactSecretsFilter())
