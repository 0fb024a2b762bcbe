"""
Centralized logging configuration for the revenue recognition engine.

This module provides standardized logging configuration using structlog
for all components. Ledger and allocation decisions go through the audit
loggers below so every recognized amount can be traced back to its cause.
"""
import logging
import sys
from decimal import Decimal
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s")

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        render_decimals,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def render_decimals(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Render Decimal amounts as plain strings, including inside a context dict."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, dict):
            event_dict[key] = {
                k: str(v) if isinstance(v, Decimal) else v for k, v in value.items()
            }
    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_allocation_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for price resolution and allocation decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the allocation subsystem
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="allocation",
        audit_trail=True
    )


def get_ledger_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for recognition ledger events.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the ledger subsystem
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="recognition_ledger",
        audit_trail=True
    )


def log_allocation_decision(
    logger: FilteringBoundLogger,
    contract_id: str,
    obligation_id: str,
    standalone_selling_price: Any,
    allocated_amount: Any,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log how much of the transaction price an obligation received.

    Args:
        logger: Structlog logger instance
        contract_id: Contract owning the obligation
        obligation_id: Obligation receiving the allocation
        standalone_selling_price: SSP used as the allocation weight
        allocated_amount: Final rounded allocation
        reason: Which allocation rule applied
        context: Additional context data
    """
    bound_logger = logger.bind(
        contract_id=contract_id,
        obligation_id=obligation_id,
        standalone_selling_price=str(standalone_selling_price),
        allocated_amount=str(allocated_amount),
        reason=reason,
        event_type="allocation_decision"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Obligation allocated")


def log_ledger_event(
    logger: FilteringBoundLogger,
    contract_id: str,
    entry_id: str,
    action: str,
    from_status: Optional[str],
    to_status: str,
    amount: Any,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a ledger mutation with standardized format.

    Args:
        logger: Structlog logger instance
        contract_id: Contract owning the ledger
        entry_id: Entry the action applies to
        action: recognize, adjust or reverse
        from_status: Status of the original entry
        to_status: Status of the appended record
        amount: Signed amount of the appended record
        context: Additional context data
    """
    bound_logger = logger.bind(
        contract_id=contract_id,
        entry_id=entry_id,
        action=action,
        from_status=from_status,
        to_status=to_status,
        amount=str(amount),
        event_type="ledger_event"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Ledger entry recorded")
