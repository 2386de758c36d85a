"""
Personal todo list.

Every id-scoped operation filters on the owner, so an id that belongs to
somebody else behaves exactly like a missing one: reads return None and
writes affect zero rows.
"""
import math
from typing import Any, Dict, Optional

from perfmgmt.core.security import sanitize_fields
from perfmgmt.database import utcnow
from perfmgmt.models.todo import Todo, TodoPriority
from perfmgmt.services.base import BaseService

FREE_TEXT_FIELDS = ("title", "description")


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    return sanitize_fields(data, FREE_TEXT_FIELDS)


class TodoService(BaseService):

    def create(self, data: Dict[str, Any], user_id: int, company_id: int) -> Todo:
        todo = Todo(**_clean(data), user_id=user_id, company_id=company_id)
        self.db.add(todo)
        self.commit()
        self.db.refresh(todo)
        self._logger.info(f"Todo {todo.id} created", extra={"user_id": user_id})
        return todo

    def find_all(
        self,
        user_id: int,
        completed: Optional[bool] = None,
        priority: Optional[TodoPriority] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        query = self.db.query(Todo).filter(Todo.user_id == user_id)
        if completed is not None:
            query = query.filter(Todo.completed == completed)
        if priority is not None:
            query = query.filter(Todo.priority == priority)

        total = query.count()
        data = (
            query.order_by(
                Todo.completed.asc(),
                Todo.due_date.asc().nulls_last(),
                Todo.created_at.desc(),
                Todo.id.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "data": data,
            "meta": {"total": total, "page": page, "limit": limit, "totalPages": math.ceil(total / limit)},
        }

    def find_one(self, todo_id: int, user_id: int) -> Optional[Todo]:
        return self.db.query(Todo).filter(Todo.id == todo_id, Todo.user_id == user_id).first()

    def update(self, todo_id: int, data: Dict[str, Any], user_id: int) -> int:
        values = _clean(data)
        for required in ("title", "priority"):
            if values.get(required, ...) is None:
                values.pop(required)
        if "completed" in values:
            if values["completed"] is True:
                values["completed_at"] = utcnow()
            elif values["completed"] is False:
                values["completed_at"] = None
            else:
                values.pop("completed")
        if not values:
            return 0
        values["updated_at"] = utcnow()

        affected = (
            self.db.query(Todo)
            .filter(Todo.id == todo_id, Todo.user_id == user_id)
            .update(values, synchronize_session=False)
        )
        self.commit()
        return affected

    def remove(self, todo_id: int, user_id: int) -> int:
        affected = (
            self.db.query(Todo)
            .filter(Todo.id == todo_id, Todo.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.commit()
        return affected

    def toggle_complete(self, todo_id: int, user_id: int) -> Optional[Todo]:
        todo = self.find_one(todo_id, user_id)
        if todo is None:
            return None
        todo.completed = not todo.completed
        todo.completed_at = utcnow() if todo.completed else None
        self.commit()
        self.db.refresh(todo)
        return todo
