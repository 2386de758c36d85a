from fastapi import status


def _create(client, headers, **payload):
    payload.setdefault("title", "Prepare review notes")
    response = client.post("/api/todos", json=payload, headers=headers)
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()


def test_create_todo_defaults(client, user, auth_headers):
    todo = _create(client, auth_headers(user), title="Write self assessment")
    assert todo["title"] == "Write self assessment"
    assert todo["priority"] == "MEDIUM"
    assert todo["completed"] is False
    assert todo["completedAt"] is None
    assert todo["createdAt"] is not None


def test_create_requires_title(client, user, auth_headers):
    response = client.post("/api/todos", json={"priority": "HIGH"}, headers=auth_headers(user))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["success"] is False


def test_date_only_due_date_is_midnight(client, user, auth_headers):
    todo = _create(client, auth_headers(user), dueDate="2024-06-01")
    assert todo["dueDate"].startswith("2024-06-01T00:00:00")


def test_title_is_sanitized(client, user, auth_headers):
    todo = _create(client, auth_headers(user), title="Review <script>alert(1)</script>goals")
    assert "<script>" not in todo["title"]
    assert todo["title"].startswith("Review")


def test_priority_filter_is_exact(client, user, auth_headers):
    headers = auth_headers(user)
    _create(client, headers, title="High one", priority="HIGH")
    _create(client, headers, title="Low one", priority="LOW")
    _create(client, headers, title="Medium one", priority="MEDIUM")

    response = client.get("/api/todos", params={"priority": "HIGH"}, headers=headers)
    body = response.json()
    assert [t["title"] for t in body["data"]] == ["High one"]
    assert body["meta"]["total"] == 1


def test_list_pagination_meta(client, user, auth_headers):
    headers = auth_headers(user)
    for i in range(5):
        _create(client, headers, title=f"Task {i}")

    body = client.get("/api/todos", params={"page": 2, "limit": 2}, headers=headers).json()
    assert body["meta"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}
    assert len(body["data"]) == 2


def test_list_orders_open_items_first_then_due_date(client, user, auth_headers):
    headers = auth_headers(user)
    done = _create(client, headers, title="Done early", dueDate="2024-01-01")
    client.patch(f"/api/todos/{done['id']}/toggle", headers=headers)
    _create(client, headers, title="No due date")
    _create(client, headers, title="Due later", dueDate="2024-09-01")
    _create(client, headers, title="Due sooner", dueDate="2024-03-01")

    titles = [t["title"] for t in client.get("/api/todos", headers=headers).json()["data"]]
    assert titles == ["Due sooner", "Due later", "No due date", "Done early"]


def test_toggle_twice_restores_state(client, user, auth_headers):
    headers = auth_headers(user)
    todo = _create(client, headers)

    first = client.patch(f"/api/todos/{todo['id']}/toggle", headers=headers).json()
    assert first["completed"] is True
    assert first["completedAt"] is not None

    second = client.patch(f"/api/todos/{todo['id']}/toggle", headers=headers).json()
    assert second["completed"] is False
    assert second["completedAt"] is None


def test_toggle_missing_todo(client, user, auth_headers):
    response = client.patch("/api/todos/99999/toggle", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["message"] == "Todo not found"


def test_update_reports_affected_rows(client, user, auth_headers):
    headers = auth_headers(user)
    todo = _create(client, headers)

    response = client.patch(f"/api/todos/{todo['id']}", json={"completed": True, "priority": "LOW"}, headers=headers)
    assert response.json() == {"message": "Todo updated", "affected": 1}

    fetched = client.get(f"/api/todos/{todo['id']}", headers=headers).json()
    assert fetched["completed"] is True
    assert fetched["completedAt"] is not None
    assert fetched["priority"] == "LOW"


def test_todos_are_isolated_per_owner(client, user, manager, auth_headers):
    todo = _create(client, auth_headers(user), title="Private item")
    other = auth_headers(manager)

    assert client.get(f"/api/todos/{todo['id']}", headers=other).json() is None
    assert client.patch(f"/api/todos/{todo['id']}", json={"title": "Hijacked"}, headers=other).json()["affected"] == 0
    assert client.delete(f"/api/todos/{todo['id']}", headers=other).json()["affected"] == 0
    assert client.get("/api/todos", headers=other).json()["meta"]["total"] == 0

    still_there = client.get(f"/api/todos/{todo['id']}", headers=auth_headers(user)).json()
    assert still_there["title"] == "Private item"


def test_delete_todo(client, user, auth_headers):
    headers = auth_headers(user)
    todo = _create(client, headers)

    assert client.delete(f"/api/todos/{todo['id']}", headers=headers).json() == {"message": "Todo deleted", "affected": 1}
    assert client.get(f"/api/todos/{todo['id']}", headers=headers).json() is None
