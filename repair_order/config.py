"""Logging setup and environment-driven settings for the order workflow."""

import logging
import os
from dataclasses import dataclass, field

import structlog

from .errors import InvalidArgumentError

DEFAULT_LOCALES = ("de", "en", "tr")


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON rendering and ISO timestamps."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


@dataclass(frozen=True)
class WorkflowSettings:
    """Tunables shared by every component of one workflow invocation."""

    log_level: str = "INFO"
    search_debounce_ms: int = 300
    default_fee: int = 20
    name_locales: tuple[str, ...] = field(default=DEFAULT_LOCALES)
    preferred_language: str = "TR"
    payment_method: str = "cash"

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0

    @classmethod
    def from_env(cls) -> "WorkflowSettings":
        """Build settings from the environment.

        Environment variables:
            REPAIR_ORDER_LOG_LEVEL: structlog level name (default: INFO)
            REPAIR_ORDER_SEARCH_DEBOUNCE_MS: customer search delay (default: 300)
            REPAIR_ORDER_DEFAULT_FEE: starting value of every fee (default: 20)
            REPAIR_ORDER_NAME_LOCALES: comma separated name precedence (default: de,en,tr)
            REPAIR_ORDER_PREFERRED_LANGUAGE: language for new customers (default: TR)
            REPAIR_ORDER_PAYMENT_METHOD: payment method on the payload (default: cash)
        """
        try:
            debounce = int(os.environ.get("REPAIR_ORDER_SEARCH_DEBOUNCE_MS", "300"))
            default_fee = int(os.environ.get("REPAIR_ORDER_DEFAULT_FEE", "20"))
        except ValueError as e:
            raise InvalidArgumentError(f"numeric setting expected: {e}") from e

        locales = tuple(
            part.strip().lower()
            for part in os.environ.get("REPAIR_ORDER_NAME_LOCALES", ",".join(DEFAULT_LOCALES)).split(",")
            if part.strip()
        )

        return cls(
            log_level=os.environ.get("REPAIR_ORDER_LOG_LEVEL", "INFO"),
            search_debounce_ms=debounce,
            default_fee=default_fee,
            name_locales=locales or DEFAULT_LOCALES,
            preferred_language=os.environ.get("REPAIR_ORDER_PREFERRED_LANGUAGE", "TR"),
            payment_method=os.environ.get("REPAIR_ORDER_PAYMENT_METHOD", "cash"),
        )
