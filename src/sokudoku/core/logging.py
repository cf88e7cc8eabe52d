import os
import sys
from typing import Any, Literal

import structlog

LogFormat = Literal["json", "plain", "auto"]


def _should_use_json_format() -> bool:
    """Determine if JSON format should be used based on environment."""
    ci_vars = ["CI", "CONTINUOUS_INTEGRATION", "GITHUB_ACTIONS", "JENKINS_URL"]
    if any(os.environ.get(var) for var in ci_vars):
        return True

    # Redirected stderr means a pipe or a file, not a person
    return bool(not sys.stderr.isatty())


def setup_logging(format_type: LogFormat = "auto") -> None:
    """
    Setup structured logging with format control.

    Logs go to stderr so that `sokudoku chunk --json` output on stdout stays
    machine readable.

    Args:
        format_type: "json" for JSON output, "plain" for human-readable,
                "auto" to auto-detect based on TTY/CI.
    """
    use_json = format_type == "json" or (format_type == "auto" and _should_use_json_format())

    if use_json:
        processors: list[Any] = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


log = structlog.get_logger()
