"""Logging setup for ossim."""

import json
import logging
import time

SERVICE_NAME = "ossim"


class JsonFormatter(logging.Formatter):
    """One JSON object per record; `event` and `extra_fields` come from `extra=`."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        ts = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
        ts += f".{int(record.created * 1000) % 1000:03d}Z"
        payload = {
            "ts": ts,
            "level": record.levelname,
            "svc": self.service,
            "event": getattr(record, "event", "log"),
            "msg": record.getMessage(),
        }
        for k, v in getattr(record, "extra_fields", {}).items():
            payload[k] = v
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(
    level_name: str = "INFO",
    textual: bool = False,
    logger: logging.Logger | None = None,
) -> None:
    """
    Configure `logger` (the root logger by default) once.

    The TUI routes records through Textual's devtools handler so they never
    write over the screen; headless runs emit JSON lines on stderr.
    """
    target = logger if logger is not None else logging.getLogger()
    if not target.handlers:
        if textual:
            from textual.logging import TextualHandler

            handler: logging.Handler = TextualHandler()
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(JsonFormatter())
        target.addHandler(handler)
    target.setLevel(getattr(logging, level_name.upper(), logging.INFO))
