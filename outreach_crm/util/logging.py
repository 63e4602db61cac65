"""
Structured operation logging for the outreach CRM.
Pipeline transitions, task and QC workflow events, imports and validation
failures all go through one logger with a uniform message shape.
"""

import logging
import os
from typing import Any, Dict, List

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

SENSITIVE_FIELDS = ['email', 'draft_content', 'draftContent', 'content', 'notes', 'secret', 'password']


class StructuredLogger:
    """Structured logger for CRM operations."""

    def __init__(self, name: str = "outreach_crm"):
        self.logger = logging.getLogger(name)
        # Unknown levels fall back to INFO; validate_config reports them
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.logger.setLevel(level if level in VALID_LOG_LEVELS else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.info(message)

    def log_entity_write(self, entity: str, operation: str, entity_id: Any, status: str = "success"):
        """Log a create/update/delete against one of the stored entities."""
        self.log_operation(f"{entity}.{operation}", status, {"id": entity_id})

    def log_stage_transition(self, prospect_id: int, from_stage: str, to_stage: str, actor: str, stamped: List[str] = None):
        """Log a prospect moving between pipeline stages."""
        details = {
            "prospect_id": prospect_id,
            "from_stage": from_stage,
            "to_stage": to_stage,
            "actor": actor
        }
        if stamped:
            details["stamped"] = stamped

        self.log_operation("pipeline.stage_changed", "success", details)

    def log_task_completion(self, task_id: int, status: str = "completed", details: Dict[str, Any] = None):
        log_details = {"task_id": task_id}
        if details:
            log_details.update(details)

        self.log_operation("task.complete", status, log_details)

    def log_qc_review(self, item_id: int, decision: str, reviewer: str, feedback: str = None):
        """Log a QC review decision."""
        log_details = {
            "item_id": item_id,
            "decision": decision,
            "reviewer": reviewer,
            "feedback": feedback[:100] if feedback else ""  # Limit feedback length
        }
        self.log_operation("qc.review", decision.lower(), log_details)

    def log_import(self, team_id: int, source: str, imported: int, duplicates: int, actor: str):
        log_details = {
            "team_id": team_id,
            "source": source,
            "imported": imported,
            "duplicates": duplicates,
            "actor": actor
        }
        self.log_operation("prospects.import", "success", log_details)

    def log_schema_validation_error(self, operation: str, errors: List[Any]):
        """Log schema validation errors with sanitized details."""
        sanitized_errors = []
        for error in errors:
            if isinstance(error, dict):
                sanitized_error = {k: v for k, v in error.items() if k not in ('input', 'ctx', 'url')}
                sanitized_errors.append(sanitized_error)
            else:
                sanitized_errors.append(str(error)[:100])

        log_details = {
            "operation": operation,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }
        self.log_operation("schema_validation.error", "rejected", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload


def audit_event(event_type: str, identifiers: Dict[str, Any], payload: Dict[str, Any] = None):
    """General audit event logging with payload redaction."""
    log_details = identifiers.copy() if identifiers else {}

    if payload:
        log_details["payload"] = sanitize_payload(payload)

    logger.log_operation(event_type, "audit", log_details)
