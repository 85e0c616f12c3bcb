"""
Structured logging for the product request approval service.

- JSON logging (console locally, full records in deployed environments)
- Contextual enrichment through contextvars (request id, request under review)
- Optional YAML overrides under `config/`

Usage:
    from request_approval.core.logging import setup_logging, get_logger, add_to_log_context

    setup_logging()
    logger = get_logger(__name__)

    with add_to_log_context(product_request_id="req-42"):
        logger.info("Approving request")
"""

from .config import get_logger, get_logging_config, setup_logging
from .exceptions import setup_exception_logging
from .filters import add_to_log_context, get_log_context

__all__ = [
    "setup_logging",
    "setup_exception_logging",
    "get_logger",
    "get_logging_config",
    "add_to_log_context",
    "get_log_context",
]
