"""Logging setup for the ledger engine."""

__all__ = ["KeyValueFormatter", "configure_logging"]

import logging
import logging.config

_configured = False


class KeyValueFormatter(logging.Formatter):
    """
    Render records as a single key=value line.

    Extra fields passed through ``logger.info(..., extra={...})`` are
    appended after the message, sorted by key.
    """

    _RESERVED = frozenset(
        logging.LogRecord(
            "", logging.INFO, "", 0, "", None, None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        base = (
            f"ts={self.formatTime(record, '%Y-%m-%dT%H:%M:%S')} "
            f"level={record.levelname} logger={record.name} "
            f'msg="{record.getMessage()}"'
        )
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            base += " " + " ".join(
                f"{key}={extras[key]}" for key in sorted(extras)
            )
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(level: str = "INFO") -> None:
    """
    Install the package handler once per process.

    Calling it again only adjusts the level.
    """
    global _configured

    if _configured:
        logging.getLogger("smb_ledger").setLevel(level)
        return

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "kv": {"()": KeyValueFormatter},
        },
        "handlers": {
            "stream": {
                "class": "logging.StreamHandler",
                "formatter": "kv",
            },
        },
        "loggers": {
            "smb_ledger": {
                "handlers": ["stream"],
                "level": level,
                "propagate": True,
            },
        },
    })
    _configured = True
