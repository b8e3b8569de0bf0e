"""
Tests for EntityService: endpoint building and the CRUD requests.
"""

import pytest
from pydantic import ValidationError

from conftest import API_URL, Comment, CommentService, Task, TaskService
from entity_cache import EntityService, HttpxTransport, RequestOptions, TransportError
from entity_cache.services import path_params_from


# =============================================================================
# Endpoint Building
# =============================================================================


class TestBuildEndpoint:
    """Tests for template resolution."""

    def test_all_placeholders_filled(self, comment_service):
        url = comment_service.build_endpoint("tasks/:taskId:/comments/:id:", {"taskId": 7, "id": 3})
        assert url == f"{API_URL}/tasks/7/comments/3"

    def test_missing_placeholder_stripped(self, comment_service):
        url = comment_service.build_endpoint("tasks/:taskId:/comments/:id:", {"taskId": 7})
        assert url == f"{API_URL}/tasks/7/comments"

    def test_falsy_value_stripped(self, comment_service):
        url = comment_service.build_endpoint("tasks/:taskId:/comments/:id:", {"taskId": 7, "id": None})
        assert url == f"{API_URL}/tasks/7/comments"

    def test_no_params(self, task_service):
        assert task_service.build_endpoint("tasks/:id:") == f"{API_URL}/tasks"

    def test_inner_segment_stripped(self, task_service):
        url = task_service.build_endpoint("projects/:projectId:/tasks/:id:", {"id": 4})
        assert url == f"{API_URL}/projects/tasks/4"

    def test_extra_params_ignored(self, task_service):
        assert task_service.build_endpoint("tasks/:id:", {"id": 1, "name": "x"}) == f"{API_URL}/tasks/1"

    def test_placeholder_with_hyphen(self, task_service):
        assert task_service.build_endpoint("boards/:board-id:", {"board-id": "b1"}) == f"{API_URL}/boards/b1"

    def test_repeated_placeholder(self, task_service):
        assert task_service.build_endpoint(":id:/copy/:id:", {"id": 2}) == f"{API_URL}/2/copy/2"

    def test_api_url_trailing_slash(self, transport):
        service = TaskService(transport, api_url="http://api.test/v1/")
        assert service.build_endpoint("tasks/:id:", {"id": 1}) == "http://api.test/v1/tasks/1"


class TestPathParams:
    def test_scalar_is_id_shorthand(self):
        assert path_params_from(5) == {"id": 5}
        assert path_params_from("abc") == {"id": "abc"}

    def test_none_is_empty(self):
        assert path_params_from(None) == {}

    def test_entity_uses_field_values(self):
        assert path_params_from(Comment({"id": 1, "taskId": 2}))["taskId"] == 2

    @pytest.mark.parametrize("path_ids", [True, 1.5, object()])
    def test_unsupported(self, path_ids):
        with pytest.raises(TypeError):
            path_params_from(path_ids)


class TestServerKey:
    def test_camel_case_to_snake_case(self, comment_service):
        assert comment_service.server_key == "task_comment"

    def test_single_word(self, task_service):
        assert task_service.server_key == "task"


# =============================================================================
# CRUD Requests
# =============================================================================


class TestGet:
    @pytest.mark.asyncio
    async def test_get_by_numeric_id(self, task_service, transport, task_payload):
        transport.respond("GET", f"{API_URL}/tasks/5", task_payload)

        task = await task_service.get(5)

        assert isinstance(task, Task)
        assert task.key == "5"
        assert transport.calls[0].method == "GET"
        assert transport.calls[0].url == f"{API_URL}/tasks/5"

    @pytest.mark.asyncio
    async def test_get_by_mapping_passes_other(self, comment_service, transport):
        transport.respond("GET", f"{API_URL}/tasks/7/comments/1", {"id": 1, "taskId": 7})
        parent = Task({"id": 7})

        comment = await comment_service.get({"taskId": 7, "id": 1}, parent)

        assert comment.task is parent

    @pytest.mark.asyncio
    async def test_nothing_sent_until_awaited(self, task_service, transport):
        pending = task_service.get(5)
        assert transport.calls == []
        await pending
        assert len(transport.calls) == 1


class TestQuery:
    @pytest.mark.asyncio
    async def test_query_sub_collection(self, comment_service, transport):
        transport.respond(
            "GET",
            f"{API_URL}/tasks/7/comments",
            [{"id": 1, "taskId": 7, "text": "a"}, {"id": 2, "taskId": 7, "text": "b"}],
        )

        result = await comment_service.query({"taskId": 7})

        assert [c.key for c in result] == ["1", "2"]
        assert all(isinstance(c, Comment) for c in result)

    @pytest.mark.asyncio
    async def test_single_object_wrapped(self, task_service, transport, task_payload):
        transport.respond("GET", f"{API_URL}/tasks", task_payload)

        result = await task_service.query()

        assert len(result) == 1
        assert result[0].name == "Write tests"

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_list(self, task_service, transport):
        transport.respond("GET", f"{API_URL}/tasks", None)
        assert await task_service.query() == []


class TestCreate:
    @pytest.mark.asyncio
    async def test_explicit_data(self, comment_service, transport):
        transport.respond("POST", f"{API_URL}/tasks/7/comments", {"id": 9, "taskId": 7, "text": "hi"})

        comment = await comment_service.create({"taskId": 7}, {"text": "hi"})

        assert transport.calls[0].body == {"text": "hi"}
        assert comment.key == "9"

    @pytest.mark.asyncio
    async def test_entity_serialized_when_no_data(self, comment_service, transport):
        transport.respond("POST", f"{API_URL}/tasks/7/comments", {"id": 9, "taskId": 7, "text": "hi"})
        draft = Comment({"taskId": 7, "text": "hi"})

        await comment_service.create(draft)

        assert transport.calls[0].body == {"id": None, "taskId": 7, "text": "hi"}

    @pytest.mark.asyncio
    async def test_mapping_used_as_body_when_no_data(self, comment_service, transport):
        transport.respond("POST", f"{API_URL}/tasks/7/comments", {"id": 9})

        await comment_service.create({"taskId": 7, "text": "hi"})

        assert transport.calls[0].body == {"taskId": 7, "text": "hi"}


class TestUpdate:
    @pytest.mark.asyncio
    async def test_updates_same_instance(self, task_service, transport, task_payload):
        task = Task(task_payload)
        task.name = "Renamed"
        sent = task.to_json()
        transport.respond("PUT", f"{API_URL}/tasks/5", {**task_payload, "name": "Renamed", "done": True})

        result = await task_service.update(task)

        assert result is task
        assert task.done is True
        assert transport.calls[0].body == sent

    @pytest.mark.asyncio
    async def test_separate_path_ids_and_entity(self, comment_service, transport):
        comment = Comment({"id": 3, "taskId": 7, "text": "old"})
        transport.respond("PUT", f"{API_URL}/tasks/7/comments/3", {"id": 3, "text": "new"})

        result = await comment_service.update({"taskId": 7, "id": 3}, comment)

        assert result is comment
        assert comment.text == "new"

    @pytest.mark.asyncio
    async def test_empty_response_keeps_entity(self, task_service, transport, task_payload):
        task = Task(task_payload)
        transport.respond("PUT", f"{API_URL}/tasks/5", None)

        assert await task_service.update(task) is task
        assert task.name == "Write tests"


class TestPutAndDelete:
    @pytest.mark.asyncio
    async def test_put_returns_raw_body(self, task_service, transport):
        transport.respond("PUT", f"{API_URL}/tasks/5", {"ok": True})
        assert await task_service.put(5, {"done": True}) == {"ok": True}
        assert transport.calls[0].body == {"done": True}

    @pytest.mark.asyncio
    async def test_delete_returns_raw_body(self, task_service, transport):
        transport.respond("DELETE", f"{API_URL}/tasks/5", {"deleted": 1})
        assert await task_service.delete(5) == {"deleted": 1}


# =============================================================================
# Options
# =============================================================================


class TestOptions:
    @pytest.mark.asyncio
    async def test_alternate_endpoint_format(self, task_service, transport):
        transport.respond("GET", f"{API_URL}/archive/tasks/5", {"id": 5})
        options = RequestOptions(alternate_endpoint_format="archive/tasks/:id:", headers={"X-Trace": "1"})

        await task_service.get(5, options=options)

        call = transport.calls[0]
        assert call.url == f"{API_URL}/archive/tasks/5"
        assert call.options.alternate_endpoint_format is None
        assert call.options.headers == {"X-Trace": "1"}

    @pytest.mark.asyncio
    async def test_alternate_format_applies_to_one_call(self, task_service, transport):
        await task_service.get(5, options={"alternate_endpoint_format": "archive/tasks/:id:"})
        await task_service.get(5)
        assert [c.url for c in transport.calls] == [f"{API_URL}/archive/tasks/5", f"{API_URL}/tasks/5"]

    @pytest.mark.asyncio
    async def test_no_options_forwarded_as_none(self, task_service, transport):
        await task_service.get(5)
        assert transport.calls[0].options is None

    @pytest.mark.asyncio
    async def test_non_string_query_params(self, task_service, transport):
        await task_service.query(options={"params": {"page": 2, "archived": False, "tag": ["a", 3]}})

        assert transport.calls[0].options.params == {"page": 2, "archived": False, "tag": ["a", 3]}

    @pytest.mark.asyncio
    async def test_unknown_option_rejected(self, task_service):
        with pytest.raises(ValidationError):
            await task_service.get(5, options={"retries": 3})


# =============================================================================
# Errors and Construction
# =============================================================================


class TestErrors:
    @pytest.mark.asyncio
    async def test_transport_error_propagates_unchanged(self, task_service, transport):
        error = TransportError("HTTP 503", status_code=503)
        transport.fail("GET", f"{API_URL}/tasks/5", error)

        with pytest.raises(TransportError) as exc_info:
            await task_service.get(5)

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_construction_error_propagates(self, transport):
        class BrokenService(TaskService):
            def create_instance_from(self, raw, other=None):
                raise ValueError("bad payload")

        transport.respond("GET", f"{API_URL}/tasks/5", {"id": 5})

        with pytest.raises(ValueError, match="bad payload"):
            await BrokenService(transport, api_url=API_URL).get(5)

    def test_missing_entity_class(self, transport):
        class Bare(EntityService):
            endpoint_format = "things/:id:"

        service = Bare(transport, api_url=API_URL)
        with pytest.raises(NotImplementedError):
            service.create_instance_from({"id": 1})
        with pytest.raises(NotImplementedError):
            service.key_for_json({"id": 1})


class TestFactory:
    def test_key_for_json(self, task_service):
        assert task_service.key_for_json({"id": 12}) == "12"

    def test_from_settings_defaults(self):
        from entity_cache.config import settings

        service = TaskService.from_settings()

        assert isinstance(service.transport, HttpxTransport)
        assert service.api_url == settings.api_url.rstrip("/")

    def test_from_settings_with_transport(self, transport):
        service = TaskService.from_settings(transport=transport, api_url="https://example.com/api")
        assert service.transport is transport
        assert service.api_url == "https://example.com/api"
