"""
Audit logging for authentication and ledger mutations.

Every change to a customer's dues leaves a JSON line on the "audit"
logger so the balance history can be investigated later.

Passwords and tokens are never logged.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _default(value: Any) -> str:
    # Decimal amounts and datetimes
    return str(value)


class AuditLog:
    """Central audit logging for security-critical and money-moving events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "register", "failed_login"
        email: str,
        success: bool,
        reason: str = "",
    ):
        """
        Log authentication events.

        Usage:
            AuditLog.log_authentication("login", "owner@example.com", True)
            AuditLog.log_authentication("failed_login", "owner@example.com", False, reason="bad password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason

        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "reconcile"
        resource_type: str,  # "customer", "transaction"
        resource_id: int,
        user_id: int,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log ledger mutations.

        Usage:
            AuditLog.log_action("create", "transaction", 12, user.id,
                                changes={"customer_id": 3, "amount": Decimal("100.00")})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user_id,
            "resource_id": resource_id,
        }
        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=_default))
