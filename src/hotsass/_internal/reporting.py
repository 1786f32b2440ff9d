"""Delivery of LogRecords to the user's ``log`` callback."""

import logging

from hotsass.config import LogRecord, SassConfig
from hotsass.http.request import Request

logger = logging.getLogger("hotsass")


def emit(config: SassConfig, request: Request | None, record: LogRecord) -> None:
    """Call ``config.log`` if set. A callback that raises is logged and ignored."""
    if config.log is None:
        return
    try:
        config.log(request, record, record.error)
    except Exception:
        logger.exception("log callback failed for %s", record.src_file)
