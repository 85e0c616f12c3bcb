import logging
import sys
import traceback

from request_approval.core.logging.filters import get_log_context

logger = logging.getLogger(__name__)


def setup_exception_logging() -> None:
    """
    Install an exception hook that logs uncaught exceptions with the current
    log context before the interpreter's default hook runs.
    """
    original_excepthook = sys.excepthook

    def handle_uncaught_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
            original_excepthook(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Uncaught exception: %s - %s",
            exc_type.__name__,
            str(exc_value),
            exc_info=(exc_type, exc_value, exc_traceback),
            extra={
                "event_type": "uncaught_exception",
                "exception_type": exc_type.__name__,
                "exception_message": str(exc_value),
                "traceback_lines": traceback.format_exception(exc_type, exc_value, exc_traceback),
                **get_log_context(),
            },
        )

        original_excepthook(exc_type, exc_value, exc_traceback)

    sys.excepthook = handle_uncaught_exception
