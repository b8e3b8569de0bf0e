"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import date
from typing import Any

import pytest

from entity_cache import CachedEntityService, Entity, EntityService, Field

API_URL = "http://api.test"


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _dump_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


# ============================================================
# Sample entities and services
# ============================================================


class Comment(Entity):
    fields = (
        Field("id"),
        Field("taskId"),
        Field("text"),
    )

    def __init__(self, initial_data=None, task=None):
        self.task = task
        super().__init__(initial_data)


class Task(Entity):
    fields = (
        Field("id"),
        Field("name"),
        Field("done"),
        Field("due", parse=_parse_date, dump=_dump_date),
        Field("created_at", write=False),
    )

    def __init__(self, initial_data=None):
        # Scoped store for this task's comments
        self.comments: dict[str, Comment] = {}
        super().__init__(initial_data)


class TaskService(EntityService[Task]):
    endpoint_format = "tasks/:id:"
    entity_name = "Task"
    entity_class = Task


class CommentService(EntityService[Comment]):
    endpoint_format = "tasks/:taskId:/comments/:id:"
    entity_name = "TaskComment"
    entity_class = Comment

    def create_instance_from(self, raw: Any, other: Any = None) -> Comment:
        return Comment(raw, task=other)


# ============================================================
# Recording transport
# ============================================================


@dataclass
class Call:
    method: str
    url: str
    body: Any
    options: Any


class RecordingTransport:
    """In-memory Transport that records calls and replays canned bodies."""

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._responses: dict[tuple[str, str], Any] = {}
        self._errors: dict[tuple[str, str], Exception] = {}

    def respond(self, method: str, url: str, body: Any) -> None:
        self._errors.pop((method, url), None)
        self._responses[(method, url)] = body

    def fail(self, method: str, url: str, error: Exception) -> None:
        self._errors[(method, url)] = error

    def calls_to(self, method: str, url: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.url == url]

    async def get(self, url, options=None):
        return self._handle("GET", url, None, options)

    async def post(self, url, body, options=None):
        return self._handle("POST", url, body, options)

    async def put(self, url, body, options=None):
        return self._handle("PUT", url, body, options)

    async def delete(self, url, options=None):
        return self._handle("DELETE", url, None, options)

    def _handle(self, method: str, url: str, body: Any, options: Any) -> Any:
        self.calls.append(Call(method, url, body, options))
        if (method, url) in self._errors:
            raise self._errors[(method, url)]
        # Fresh copy per call, like a real response body
        return copy.deepcopy(self._responses.get((method, url)))


# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def transport():
    """Provide a recording transport."""
    return RecordingTransport()


@pytest.fixture
def task_service(transport):
    return TaskService(transport, api_url=API_URL)


@pytest.fixture
def comment_service(transport):
    return CommentService(transport, api_url=API_URL)


@pytest.fixture
def tasks(task_service):
    """Cached task service."""
    return CachedEntityService(task_service)


@pytest.fixture
def comments(comment_service):
    """Cached comment service."""
    return CachedEntityService(comment_service)


@pytest.fixture
def task_payload():
    return {
        "id": 5,
        "name": "Write tests",
        "done": False,
        "due": "2024-05-01",
        "created_at": "2024-04-01T10:00:00Z",
    }
