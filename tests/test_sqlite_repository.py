import os
import sqlite3
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import NOW, make_settings
from todo_api.db import SQLiteRepository
from todo_api.errors import NotFoundError, StoreError
from todo_api.main import create_app
from todo_api.models import TodoStatus
from todo_api.pagination import paginate
from todo_api.query import QueryPlan, SortSpec
from todo_api.repositories import InMemoryRepository, get_repository
from todo_api.stats import aggregate

STATUSES = [TodoStatus.PENDING, TodoStatus.IN_PROGRESS, TodoStatus.COMPLETED]


def make_record(i, **overrides):
    record = {
        "title": f"Task {i:02d}",
        "description": f"Desc {i}" if i % 2 else None,
        "status": STATUSES[i % 3],
        "deadline": None if i % 4 == 0 else NOW + timedelta(days=i - 5),
        "created_at": NOW + timedelta(minutes=i % 5),
        "updated_at": NOW + timedelta(minutes=i % 5),
    }
    record.update(overrides)
    return record


@pytest.fixture
def sqlite_repo(tmp_path):
    return SQLiteRepository(str(tmp_path / "nested" / "todos.db"))


class TestSQLiteRepository:
    def test_creates_database_file(self, tmp_path, sqlite_repo):
        assert os.path.exists(tmp_path / "nested" / "todos.db")

    def test_insert_and_get(self, sqlite_repo):
        todo_id = sqlite_repo.insert(make_record(1))
        item = sqlite_repo.get(todo_id)
        assert item is not None
        assert item["id"] == todo_id
        assert item["title"] == "Task 01"
        assert item["status"] is TodoStatus.IN_PROGRESS
        assert item["deadline"] == NOW - timedelta(days=4)
        assert item["created_at"] == NOW + timedelta(minutes=1)

    def test_get_missing(self, sqlite_repo):
        assert sqlite_repo.get(404) is None

    def test_update(self, sqlite_repo):
        todo_id = sqlite_repo.insert(make_record(3))
        later = NOW + timedelta(hours=2)
        updated = sqlite_repo.update(todo_id, {"status": TodoStatus.COMPLETED, "deadline": None, "updated_at": later})
        assert updated["status"] is TodoStatus.COMPLETED
        assert updated["deadline"] is None
        assert updated["updated_at"] == later
        assert updated["title"] == "Task 03"

    def test_update_missing(self, sqlite_repo):
        with pytest.raises(NotFoundError):
            sqlite_repo.update(12, {"title": "x"})

    def test_delete(self, sqlite_repo):
        todo_id = sqlite_repo.insert(make_record(0))
        sqlite_repo.delete(todo_id)
        assert sqlite_repo.get(todo_id) is None
        with pytest.raises(NotFoundError):
            sqlite_repo.delete(todo_id)

    def test_ids_not_reused(self, sqlite_repo):
        first = sqlite_repo.insert(make_record(0))
        sqlite_repo.delete(first)
        assert sqlite_repo.insert(make_record(1)) > first

    def test_count_and_scan(self, sqlite_repo):
        for i in range(7):
            sqlite_repo.insert(make_record(i))
        assert sqlite_repo.count() == 7
        assert sqlite_repo.count(TodoStatus.PENDING) == 3
        assert len(list(sqlite_repo.scan_all())) == 7
        stats = aggregate(sqlite_repo.scan_all(), NOW)
        assert stats.total == 7
        assert stats.completed == 2

    def test_unknown_sort_field_is_refused(self, sqlite_repo):
        with pytest.raises(ValueError):
            sqlite_repo.query(None, SortSpec("description; DROP TABLE todos", True), 10)

    @pytest.mark.parametrize("field", ["created_at", "updated_at", "deadline", "title", "status"])
    @pytest.mark.parametrize("descending", [True, False])
    @pytest.mark.parametrize("status", [None, TodoStatus.PENDING])
    def test_matches_in_memory_ordering(self, sqlite_repo, field, descending, status):
        memory = InMemoryRepository()
        for i in range(17):
            sqlite_repo.insert(make_record(i))
            memory.insert(make_record(i))

        sort = SortSpec(field, descending)
        for page_no in range(1, 5):
            plan = QueryPlan(status=status, sort=sort, page=page_no, limit=5)
            from_sqlite = paginate(sqlite_repo, plan)
            from_memory = paginate(memory, plan)
            assert [t["id"] for t in from_sqlite.items] == [t["id"] for t in from_memory.items]
            assert from_sqlite.info == from_memory.info



def drop_table(path):
    conn = sqlite3.connect(path)
    try:
        conn.execute("DROP TABLE todos")
        conn.commit()
    finally:
        conn.close()


class TestStoreErrors:
    def test_driver_errors_become_store_errors(self, tmp_path):
        path = str(tmp_path / "todos.db")
        repo = SQLiteRepository(path)
        repo.insert(make_record(1))
        drop_table(path)

        with pytest.raises(StoreError):
            repo.count()
        with pytest.raises(StoreError):
            repo.query(None, SortSpec(), 10)
        with pytest.raises(StoreError):
            list(repo.scan_all())

    def test_store_error_is_a_500_envelope(self, tmp_path):
        path = str(tmp_path / "todos.db")
        repo = SQLiteRepository(path)
        drop_table(path)
        app = create_app(repository=repo, settings=make_settings())

        res = TestClient(app).get("/api/todos")
        assert res.status_code == 500
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert "no such table" in body["details"]


class TestGetRepository:
    def test_memory_backend(self):
        assert isinstance(get_repository(make_settings()), InMemoryRepository)

    def test_sqlite_backend(self, tmp_path):
        settings = make_settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "app.db"))
        assert isinstance(get_repository(settings), SQLiteRepository)
