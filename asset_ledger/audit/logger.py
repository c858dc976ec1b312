"""
Audit Logger

DESIGN DECISION: Every mutation of the store is logged, and so is every
failure the store deliberately does not raise (persistence writes, image
cleanup, observer callbacks). The structured log is the operator channel
for those failures.

The audit logger:
- Is synchronous, like the store that drives it
- Never raises into the caller
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from asset_ledger.config import get_settings
from asset_ledger.models.audit import AuditEvent, AuditEventBuilder


def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib logging and structlog to emit JSON lines."""
    level_name = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=getattr(logging, level_name))

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


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Writes AuditEvents to the structured log at their own severity.
    """

    def __init__(self, logger_name: str = "asset_ledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_store_loaded(self, item_count: int, category_count: int) -> None:
        self.log(AuditEventBuilder.store_loaded(item_count, category_count))

    def log_store_load_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.store_load_failed(error_message))

    def log_store_seeded(self, reason: str, item_count: int, category_count: int) -> None:
        self.log(AuditEventBuilder.store_seeded(reason, item_count, category_count))

    def log_item_added(self, item_id: UUID, name: str, value: str) -> None:
        self.log(AuditEventBuilder.item_added(item_id, name, value))

    def log_item_updated(self, item_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.item_updated(item_id, name))

    def log_item_deleted(
        self,
        item_id: UUID,
        name: str,
        image_removed: Optional[bool] = None,
    ) -> None:
        self.log(AuditEventBuilder.item_deleted(item_id, name, image_removed))

    def log_value_recorded(self, item_id: UUID, record_id: UUID, value: str) -> None:
        self.log(AuditEventBuilder.value_recorded(item_id, record_id, value))

    def log_category_added(self, category_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.category_added(category_id, name))

    def log_category_updated(self, category_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.category_updated(category_id, name))

    def log_category_deleted(self, category_id: UUID, name: str, affected_items: int) -> None:
        self.log(AuditEventBuilder.category_deleted(category_id, name, affected_items))

    def log_persist_failed(self, error_message: str, operation: str) -> None:
        """Log a failed write of the collection files."""
        self.log(AuditEventBuilder.persist_failed(error_message, operation))

    def log_image_saved(self, item_id: UUID, image_name: str) -> None:
        self.log(AuditEventBuilder.image_saved(item_id, image_name))

    def log_image_save_failed(self, item_id: UUID, image_name: str) -> None:
        self.log(AuditEventBuilder.image_save_failed(item_id, image_name))

    def log_image_delete_failed(self, item_id: UUID, image_name: str) -> None:
        """Log a blob that could not be removed and may now be orphaned."""
        self.log(AuditEventBuilder.image_delete_failed(item_id, image_name))

    def log_observer_failed(self, error_message: str, change: str) -> None:
        self.log(AuditEventBuilder.observer_failed(error_message, change))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))
