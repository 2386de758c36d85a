from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from perfmgmt.core.schemas import MessageResponse
from perfmgmt.database import get_db
from perfmgmt.models.todo import TodoPriority
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user
from perfmgmt.schemas.todo import BusinessTodo, TodoCreate, TodoListResponse, TodoResponse, TodoUpdate
from perfmgmt.services.business_todos import get_business_todos
from perfmgmt.services.todo_service import TodoService

router = APIRouter(prefix="/todos", tags=["Todos"])


@router.post("", response_model=TodoResponse)
def create_todo(
    payload: TodoCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return TodoService(db).create(payload.model_dump(), current_user.id, current_user.company_id)


@router.get("", response_model=TodoListResponse)
def list_todos(
    completed: Optional[bool] = None,
    priority: Optional[TodoPriority] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return TodoService(db).find_all(current_user.id, completed=completed, priority=priority, page=page, limit=limit)


# Declared before /{todo_id} so "business" is never parsed as an id
@router.get("/business", response_model=List[BusinessTodo])
def business_todos(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return get_business_todos(db, current_user.id, current_user.company_id, current_user.role)


@router.get("/{todo_id}", response_model=Optional[TodoResponse])
def get_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return TodoService(db).find_one(todo_id, current_user.id)


@router.patch("/{todo_id}", response_model=MessageResponse)
def update_todo(
    todo_id: int,
    payload: TodoUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    affected = TodoService(db).update(todo_id, payload.model_dump(exclude_unset=True), current_user.id)
    return MessageResponse(message="Todo updated", affected=affected)


@router.patch("/{todo_id}/toggle", response_model=Union[TodoResponse, MessageResponse])
def toggle_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    todo = TodoService(db).toggle_complete(todo_id, current_user.id)
    if todo is None:
        return MessageResponse(message="Todo not found")
    return TodoResponse.model_validate(todo)


@router.delete("/{todo_id}", response_model=MessageResponse)
def delete_todo(
    todo_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    affected = TodoService(db).remove(todo_id, current_user.id)
    return MessageResponse(message="Todo deleted", affected=affected)
