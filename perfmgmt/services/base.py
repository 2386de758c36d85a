import logging
from typing import Optional

from sqlalchemy.orm import Session


class BaseService:
    """
    Shared plumbing for database-backed services: the request session, the
    tenant the service acts for, and a logger named after the concrete class.
    """

    def __init__(self, db: Session, company_id: Optional[int] = None):
        self.db = db
        self.company_id = company_id
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
