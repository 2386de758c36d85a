from typing import Optional

from perfmgmt.services.base import BaseService
from perfmgmt.models.audit_log import AuditLog


def _jsonable(obj):
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "value"):
        return obj.value
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(i) for i in obj]
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: dict,
        company_id: Optional[int] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None
    ):
        """
        Append an audit entry to the current transaction.
        Flushed, not committed: the entry persists only if the action it
        describes commits.
        """
        try:
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=_jsonable(user_role),
                details=_jsonable(details),
                company_id=company_id or self.company_id,
                before_state=_jsonable(before_state),
                after_state=_jsonable(after_state)
            )
            self.db.add(db_log)
            self.db.flush()
            return db_log
        except Exception as e:
            # An audit failure never breaks the main flow
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    @staticmethod
    def log(db, *args, **kwargs):
        service = AuditService(db)
        return service.log_action(*args, **kwargs)
