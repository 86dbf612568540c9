"""Structured logging setup."""

import logging
import sys

from pythonjsonlogger import jsonlogger


def setup_logging(level='INFO'):
    """Configure JSON logging on the root logger.

    Every record is written to stdout as one JSON object holding the
    timestamp, level, logger name and message, plus any fields passed
    through ``extra`` (``call_id``, ``transaction_id`` and so on).

    :param level: Name or number of the root log level.
    :returns: The configured root logger.
    """
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s'
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    # websockets is chatty at DEBUG about every frame
    logging.getLogger('websockets').setLevel(logging.INFO)
    return root_logger
