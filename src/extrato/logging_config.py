import logging
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StatementLoggerAdapter(logging.LoggerAdapter):
    """Adapter that turns keyword arguments into structured ``extra`` fields.

    ``logger.warning("Skipped record", line=4)`` stores ``{"line": 4}`` under
    ``record.extra_fields`` instead of failing on the unknown keyword.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(extra.get("extra_fields") or {})

        standard_args = {"exc_info", "stack_info", "stacklevel", "extra"}
        new_kwargs = {}
        for key, value in kwargs.items():
            if key in standard_args:
                new_kwargs[key] = value
            else:
                fields[key] = value

        extra["extra_fields"] = fields
        new_kwargs["extra"] = extra
        return msg, new_kwargs


def get_logger(name: str) -> StatementLoggerAdapter:
    return StatementLoggerAdapter(logging.getLogger(name), {})


def setup_logging(level: int | str = logging.WARNING) -> None:
    """Configure the root logger for command-line use."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if root_logger.handlers:
        root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
