"""Shared logging configuration for the calculator entry points."""
import os
import sys
import json
import traceback
from aws_lambda_powertools import Logger


def format_exception(exc_info):
    """Collapse a traceback into one log line."""
    if exc_info is True:
        exc_info = sys.exc_info()

    if not (exc_info and isinstance(exc_info, tuple) and len(exc_info) == 3):
        return None
    if exc_info[0] is None:
        return None
    try:
        trace = ''.join(traceback.format_exception(*exc_info))
    except Exception as e:
        return f"Error formatting exception: {str(e)}"
    return trace.replace('\n', ' | ').strip()


class SingleLineLogger(Logger):
    """Logger whose exception records keep the traceback on a single line."""

    def exception(self, message, *args, **kwargs):
        exc_info = kwargs.pop('exc_info', True)
        extra = kwargs.pop('extra', {})
        extra['exception'] = format_exception(exc_info)
        kwargs['exc_info'] = False
        kwargs['extra'] = extra
        super().exception(message, *args, **kwargs)


logger = SingleLineLogger(
    service=os.environ.get('POWERTOOLS_SERVICE_NAME', 'cycle_calculator'),
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    log_uncaught_exceptions=True,
    json_serializer=json.dumps,
    use_rfc3339=True
)

logger.append_keys(
    region=os.environ.get('AWS_REGION'),
    function=os.environ.get('AWS_LAMBDA_FUNCTION_NAME'),
    version=os.environ.get('AWS_LAMBDA_FUNCTION_VERSION')
)


def bind_invocation(logger, tracker_id, table_name, reason):
    """Attach the tracker and trigger to every log line of this invocation."""
    logger.append_keys(
        tracker_id=tracker_id,
        table_name=table_name,
        trigger=reason or "scheduled"
    )


def log_exception(logger, message, exc_info=None, **kwargs):
    """Log the active exception, its type and a single-line traceback."""
    exc_info = exc_info if exc_info else sys.exc_info()
    extra = kwargs.pop('extra', {})
    if exc_info and exc_info[0] is not None:
        extra['error_type'] = exc_info[0].__name__
        extra['error'] = str(exc_info[1])
    extra['exception'] = format_exception(exc_info)
    logger.error(message, extra=extra, **kwargs)
