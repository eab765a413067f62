"""Tests for the GitHub tracker adapter."""

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from top_issues.adapters.github import GitHubClient
from top_issues.core import ItemKind, LabelOperation, TrackerError


@pytest.fixture
def client() -> GitHubClient:
    """Create a client without retry delays."""
    return GitHubClient(
        token="test-token",
        repository="octo/repo",
        max_retries=3,
        initial_retry_delay=0,
    )


def _response(status_code: int = 200, payload: Any = None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.text = text
    response.headers = {}
    return response


def _page(numbers: list[int], has_next_page: bool, end_cursor: Optional[str] = None) -> dict:
    return {
        "data": {
            "repository": {
                "open_items": {
                    "nodes": [
                        {
                            "number": number,
                            "title": f"Title {number}",
                            "positive": {"totalCount": number},
                            "negative": {"totalCount": 1},
                            "labels": {"nodes": [{"name": "bug"}]},
                        }
                        for number in numbers
                    ],
                    "pageInfo": {"endCursor": end_cursor, "hasNextPage": has_next_page},
                }
            }
        }
    }


def _patch_http(*responses: Any):
    """Patch httpx.AsyncClient so that requests return the given responses."""
    patcher = patch("httpx.AsyncClient")
    mock_client_class = patcher.start()
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.request.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return patcher, mock_client


@pytest.mark.asyncio
async def test_fetch_open_items_paginates(client: GitHubClient) -> None:
    """Test that every page is fetched in order."""
    patcher, http = _patch_http(
        _response(payload=_page([9, 8], True, "cursor-1")),
        _response(payload=_page([7], False, "cursor-2")),
    )
    try:
        items = await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()

    assert [item.id for item in items] == [9, 8, 7]
    assert items[0].positive_reactions == 9
    assert items[0].negative_reactions == 1
    assert items[0].labels == ["bug"]
    assert items[0].kind == ItemKind.ISSUE

    first_call, second_call = http.request.call_args_list
    assert first_call.args == ("POST", "https://api.github.com/graphql")
    assert first_call.kwargs["json"]["variables"]["cursor"] is None
    assert "issues(" in first_call.kwargs["json"]["query"]
    assert second_call.kwargs["json"]["variables"]["cursor"] == "cursor-1"
    assert first_call.kwargs["headers"]["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
async def test_fetch_pull_requests_uses_pull_request_connection(client: GitHubClient) -> None:
    """Test the pull request query."""
    patcher, http = _patch_http(_response(payload=_page([3], False)))
    try:
        items = await client.fetch_open_items(ItemKind.PULL_REQUEST)
    finally:
        patcher.stop()

    assert items[0].kind == ItemKind.PULL_REQUEST
    assert "pullRequests(" in http.request.call_args.kwargs["json"]["query"]


@pytest.mark.asyncio
async def test_fetch_graphql_errors_raise(client: GitHubClient) -> None:
    """Test that GraphQL errors are reported as tracker errors."""
    patcher, _ = _patch_http(
        _response(payload={"errors": [{"message": "Could not resolve to a Repository"}]})
    )
    try:
        with pytest.raises(TrackerError, match="Could not resolve"):
            await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()


@pytest.mark.asyncio
async def test_fetch_auth_failure_raises(client: GitHubClient) -> None:
    """Test that authentication failures are not retried."""
    patcher, http = _patch_http(_response(401, {"message": "Bad credentials"}))
    try:
        with pytest.raises(TrackerError, match="Bad credentials") as exc_info:
            await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()

    assert exc_info.value.status_code == 401
    assert http.request.call_count == 1


@pytest.mark.asyncio
async def test_request_retries_on_server_error(client: GitHubClient) -> None:
    """Test retry logic on 5xx and 429 responses."""
    patcher, http = _patch_http(
        _response(502),
        _response(429),
        _response(payload=_page([1], False)),
    )
    try:
        items = await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()

    assert [item.id for item in items] == [1]
    assert http.request.call_count == 3


@pytest.mark.asyncio
async def test_request_network_error_is_wrapped(client: GitHubClient) -> None:
    """Test that network errors become tracker errors after retries."""
    patcher, http = _patch_http(
        httpx.ConnectError("boom"),
        httpx.ConnectError("boom"),
        httpx.ConnectError("boom"),
    )
    try:
        with pytest.raises(TrackerError, match="Network error"):
            await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()

    assert http.request.call_count == 3


@pytest.mark.asyncio
async def test_add_label(client: GitHubClient) -> None:
    """Test adding a label to an item."""
    patcher, http = _patch_http(_response(200, [{"name": "top"}]))
    try:
        await client.mutate_label(12, ":star: top issue", LabelOperation.ADD)
    finally:
        patcher.stop()

    call = http.request.call_args
    assert call.args == ("POST", "https://api.github.com/repos/octo/repo/issues/12/labels")
    assert call.kwargs["json"] == {"labels": [":star: top issue"]}


@pytest.mark.asyncio
async def test_remove_label_is_idempotent(client: GitHubClient) -> None:
    """Test that removing an absent label is a no-op."""
    patcher, http = _patch_http(_response(404, {"message": "Label does not exist"}))
    try:
        await client.mutate_label(12, ":star: top issue", LabelOperation.REMOVE)
    finally:
        patcher.stop()

    call = http.request.call_args
    assert call.args == (
        "DELETE",
        "https://api.github.com/repos/octo/repo/issues/12/labels/%3Astar%3A%20top%20issue",
    )


@pytest.mark.asyncio
async def test_mutate_label_error_carries_context(client: GitHubClient) -> None:
    """Test that label errors embed the item and the label."""
    patcher, _ = _patch_http(_response(403, {"message": "Resource not accessible"}))
    try:
        with pytest.raises(TrackerError) as exc_info:
            await client.mutate_label(5, "top", LabelOperation.ADD)
    finally:
        patcher.stop()

    error = exc_info.value
    assert error.item_id == 5
    assert error.label == "top"
    assert "#5" in str(error)
    assert "'top'" in str(error)


@pytest.mark.asyncio
async def test_ensure_label_creates_missing_label(client: GitHubClient) -> None:
    """Test label creation when the label does not exist."""
    patcher, http = _patch_http(_response(404), _response(201))
    try:
        await client.ensure_label("top", "#027E9D", "Top issue.")
    finally:
        patcher.stop()

    create_call = http.request.call_args_list[1]
    assert create_call.args == ("POST", "https://api.github.com/repos/octo/repo/labels")
    assert create_call.kwargs["json"] == {
        "name": "top",
        "color": "027e9d",
        "description": "Top issue.",
    }


@pytest.mark.asyncio
async def test_ensure_label_updates_divergent_label(client: GitHubClient) -> None:
    """Test label update when colour or description differ."""
    patcher, http = _patch_http(
        _response(payload={"name": "top", "color": "ffffff", "description": "Top issue."}),
        _response(200),
    )
    try:
        await client.ensure_label("top", "#027E9D", "Top issue.")
    finally:
        patcher.stop()

    update_call = http.request.call_args_list[1]
    assert update_call.args[0] == "PATCH"
    assert update_call.kwargs["json"] == {"color": "027e9d", "description": "Top issue."}


@pytest.mark.asyncio
async def test_ensure_label_noop_when_matching(client: GitHubClient) -> None:
    """Test that a matching label is left alone."""
    patcher, http = _patch_http(
        _response(payload={"name": "top", "color": "027E9D", "description": "Top issue."}),
    )
    try:
        await client.ensure_label("top", "#027e9d", "Top issue.")
    finally:
        patcher.stop()

    assert http.request.call_count == 1


@pytest.mark.asyncio
async def test_publish_dashboard_updates_existing(client: GitHubClient) -> None:
    """Test updating an existing dashboard issue."""
    patcher, http = _patch_http(_response(200))
    try:
        await client.publish_dashboard("Dashboard", "body", "dash", existing_id=77)
    finally:
        patcher.stop()

    call = http.request.call_args
    assert call.args == ("PATCH", "https://api.github.com/repos/octo/repo/issues/77")
    assert call.kwargs["json"] == {"title": "Dashboard", "body": "body", "labels": ["dash"]}


@pytest.mark.asyncio
async def test_publish_dashboard_creates_new(client: GitHubClient) -> None:
    """Test creating the dashboard issue."""
    patcher, http = _patch_http(_response(201))
    try:
        await client.publish_dashboard("Dashboard", "body", "dash")
    finally:
        patcher.stop()

    call = http.request.call_args
    assert call.args == ("POST", "https://api.github.com/repos/octo/repo/issues")
    assert call.kwargs["json"]["labels"] == ["dash"]


@pytest.mark.asyncio
async def test_ensure_label_non_json_body_raises_tracker_error(client: GitHubClient) -> None:
    """Test that an HTML page in place of the label is reported, not raised raw."""
    response = _response(200, text="<html>Unicorn!</html>")
    response.json.side_effect = ValueError("Expecting value")
    patcher, _ = _patch_http(response)
    try:
        with pytest.raises(TrackerError, match="Invalid JSON response") as exc_info:
            await client.ensure_label("top", "#027E9D", "Top issue.")
    finally:
        patcher.stop()

    assert exc_info.value.label == "top"
    assert exc_info.value.operation == "get label"


@pytest.mark.asyncio
async def test_fetch_non_json_page_raises_tracker_error(client: GitHubClient) -> None:
    """Test that a non-JSON GraphQL page becomes a tracker error."""
    response = _response(200, text="<html>Bad gateway</html>")
    response.json.side_effect = ValueError("Expecting value")
    patcher, _ = _patch_http(response)
    try:
        with pytest.raises(TrackerError, match="Invalid JSON response"):
            await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()


@pytest.mark.asyncio
async def test_fetch_non_object_payload_raises_tracker_error(client: GitHubClient) -> None:
    """Test that a JSON list where an object is expected becomes a tracker error."""
    patcher, _ = _patch_http(_response(200, ["unexpected"]))
    try:
        with pytest.raises(TrackerError, match="Unexpected response body: list"):
            await client.fetch_open_items(ItemKind.ISSUE)
    finally:
        patcher.stop()


@pytest.mark.asyncio
async def test_error_status_with_non_json_body_uses_text(client: GitHubClient) -> None:
    """Test that an error page without JSON still yields the HTTP status."""
    response = _response(403, text="Forbidden by proxy")
    response.json.side_effect = ValueError("Expecting value")
    patcher, _ = _patch_http(response)
    try:
        with pytest.raises(TrackerError, match="HTTP 403: Forbidden by proxy") as exc_info:
            await client.mutate_label(5, "top", LabelOperation.ADD)
    finally:
        patcher.stop()

    assert exc_info.value.status_code == 403
