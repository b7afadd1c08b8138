"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across purchase and reconciliation
operations.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="replace_increase",
        outcome="success",
        purchase_id=123,
        storage_location_id=4,
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "essentials_tracker.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named with the 'essentials_tracker.services' prefix.

    Example:
        >>> logger = get_service_logger("src.services.purchase_service")
        >>> logger.name
        'essentials_tracker.services.purchase_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "create_purchase", "replace_increase")
        outcome: Outcome description (e.g., "success", "category_mismatch")
        level: Log level (default: INFO). Use DEBUG for per-item detail.
        **context: Additional context fields (entity IDs, deltas, error details)

    Example:
        >>> log_operation(
        ...     logger,
        ...     operation="apply_deltas",
        ...     outcome="underflow",
        ...     level=logging.WARNING,
        ...     storage_location_id=4,
        ...     item_id=7,
        ... )
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
