"""
Session Event Logger

DESIGN DECISION: Every significant action of the coordinator is logged.
This provides:
1. Traceability of which backend served each operation
2. Visibility of store failures that are otherwise absorbed
3. A record of discarded (stale) reloads

The event logger:
- Is async so it sits naturally inside coordinator coroutines
- Never raises (a logging failure must not break the main flow)
"""

import logging
import sys
from typing import Optional

import structlog

from pocketwatch.models.audit import EventSeverity, SessionEvent, SessionEventBuilder


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog on top of stdlib logging (JSON lines to stderr)."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class EventLogger:
    """
    Central session event logging service.

    Events go to the structured log at the level matching their severity.
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("pocketwatch.session")

    async def log(self, event: SessionEvent) -> bool:
        """
        Log a session event.

        Returns False if the log call itself failed.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == EventSeverity.ERROR:
                self._logger.error("session_event", **log_dict)
            elif event.severity == EventSeverity.WARNING:
                self._logger.warning("session_event", **log_dict)
            elif event.severity == EventSeverity.DEBUG:
                self._logger.debug("session_event", **log_dict)
            else:
                self._logger.info("session_event", **log_dict)
            return True
        except Exception:
            return False

    async def log_session_started(self, backend: str) -> None:
        await self.log(SessionEventBuilder.session_started(backend))

    async def log_identity_resolved(self, user_id: Optional[str]) -> None:
        await self.log(SessionEventBuilder.identity_resolved(user_id))

    async def log_identity_timeout(self, timeout_seconds: float) -> None:
        await self.log(SessionEventBuilder.identity_timeout(timeout_seconds))

    async def log_identity_changed(self, event: str, user_id: Optional[str]) -> None:
        await self.log(SessionEventBuilder.identity_changed(event, user_id))

    async def log_reload_completed(self, backend: str, token: int, count: int) -> None:
        await self.log(SessionEventBuilder.reload_completed(backend, token, count))

    async def log_reload_discarded(self, backend: str, token: int, latest: int) -> None:
        await self.log(SessionEventBuilder.reload_discarded(backend, token, latest))

    async def log_transaction_created(self, backend: str, transaction_id: str, amount: str) -> None:
        await self.log(SessionEventBuilder.transaction_created(backend, transaction_id, amount))

    async def log_transaction_updated(self, backend: str, transaction_id: str, fields: list[str]) -> None:
        await self.log(SessionEventBuilder.transaction_updated(backend, transaction_id, fields))

    async def log_transaction_deleted(self, backend: str, transaction_id: str) -> None:
        await self.log(SessionEventBuilder.transaction_deleted(backend, transaction_id))

    async def log_settings_updated(self, backend: str, fields: list[str]) -> None:
        await self.log(SessionEventBuilder.settings_updated(backend, fields))

    async def log_validation_rejected(self, issues: list[dict]) -> None:
        await self.log(SessionEventBuilder.validation_rejected(issues))

    async def log_store_failure(
        self,
        backend: str,
        operation: str,
        entity_id: Optional[str] = None,
    ) -> None:
        await self.log(SessionEventBuilder.store_failure(backend, operation, entity_id))
