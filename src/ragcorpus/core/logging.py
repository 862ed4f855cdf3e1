import logging
import sys
from typing import Any, Literal

import structlog

from .progress import should_use_pretty

LogFormat = Literal["json", "plain", "auto"]


def setup_logging(format_type: LogFormat = "auto", level: str = "INFO") -> None:
    """
    Configure structlog for a build.

    Events go to stderr so stdout stays free for command output
    (``ragcorpus chunk`` prints JSON lines there). Each event carries the
    name of the thread that logged it, which tells pool workers apart.

    Args:
        format_type: "json", "plain", or "auto" (JSON unless stderr is an
            interactive terminal outside CI).
        level: Minimum level name, e.g. "INFO" or "WARNING".
    """
    use_json = format_type == "json" or (format_type == "auto" and not should_use_pretty())
    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder([structlog.processors.CallsiteParameter.THREAD_NAME]),
    ]
    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    # The stream is looked up per event; CliRunner and pytest swap sys.stderr
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


log = structlog.get_logger()
