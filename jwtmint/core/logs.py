"""Console logging setup and pretty JSON dumps for the debug channel."""

import json
import logging
import sys
from typing import Any

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Send log records to stderr; DEBUG level when debug is on."""
    logging.basicConfig(
        format=LOG_FORMAT,
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        force=True,
    )


def pretty_json(data: Any) -> str:
    """Indent a JSON-compatible value, or a JSON string/bytes document."""
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError:
            return data.decode(errors="replace") if isinstance(data, bytes) else data
    return json.dumps(data, indent=2, sort_keys=False, default=str)


def log_json(logger: logging.Logger, description: str, data: Any) -> None:
    """Emit a labelled, pretty-printed JSON block at INFO."""
    logger.info("%s:\n%s", description, pretty_json(data))
