"""GitHub issue tracker: GraphQL snapshot queries and REST label/issue calls."""

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from top_issues.core import IssueTracker, Item, ItemKind, LabelOperation, TrackerError

logger = logging.getLogger(__name__)

_CONNECTIONS = {
    ItemKind.ISSUE: "issues",
    ItemKind.PULL_REQUEST: "pullRequests",
}

_SNAPSHOT_QUERY = """
query($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    open_items: __CONNECTION__(
      first: $pageSize, after: $cursor, states: OPEN,
      orderBy: {field: CREATED_AT, direction: DESC}
    ) {
      nodes {
        number
        title
        positive: reactions(content: THUMBS_UP) {
          totalCount
        }
        negative: reactions(content: THUMBS_DOWN) {
          totalCount
        }
        labels(first: 100) {
          nodes {
            name
          }
        }
      }
      pageInfo {
        endCursor
        hasNextPage
      }
    }
  }
}
"""


class GitHubClient(IssueTracker):
    """GitHub implementation of the issue tracker for one repository."""

    def __init__(
        self,
        token: str,
        repository: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        initial_retry_delay: float = 2.0,
        page_size: int = 100,
    ) -> None:
        self.token = token
        self.repository = repository
        self.owner, self.name = repository.split("/", 1)
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.page_size = page_size

    async def fetch_open_items(self, kind: ItemKind) -> list[Item]:
        """Fetch all open issues or pull requests, newest first."""
        operation = f"fetch open {_CONNECTIONS[kind]}"
        query = _SNAPSHOT_QUERY.replace("__CONNECTION__", _CONNECTIONS[kind])
        items: list[Item] = []
        cursor: Optional[str] = None
        page = 0

        while True:
            page += 1
            data = await self._graphql(
                query,
                {
                    "owner": self.owner,
                    "name": self.name,
                    "cursor": cursor,
                    "pageSize": self.page_size,
                },
                operation,
            )
            try:
                connection = data["repository"]["open_items"]
                items.extend(self._item_from_node(node, kind) for node in connection["nodes"])
                has_next_page = connection["pageInfo"]["hasNextPage"]
                cursor = connection["pageInfo"]["endCursor"]
            except (KeyError, TypeError) as e:
                raise TrackerError(operation, f"Unexpected GraphQL response: {e!r}") from e

            logger.debug("%s: page %d, %d items so far", operation, page, len(items))
            if not has_next_page:
                break

        logger.info("Fetched %d open %s from %s", len(items), _CONNECTIONS[kind], self.repository)
        return items

    async def mutate_label(self, item_id: int, label: str, op: LabelOperation) -> None:
        """Add or remove a label; both directions are idempotent."""
        if op == LabelOperation.ADD:
            response = await self._request(
                "POST",
                f"/repos/{self.repository}/issues/{item_id}/labels",
                json={"labels": [label]},
                operation="add label",
                item_id=item_id,
                label=label,
            )
            self._raise_for_status(response, "add label", item_id=item_id, label=label)
            return

        response = await self._request(
            "DELETE",
            f"/repos/{self.repository}/issues/{item_id}/labels/{quote(label, safe='')}",
            operation="remove label",
            item_id=item_id,
            label=label,
        )
        if response.status_code == 404:
            logger.debug("Label '%s' already absent from #%d", label, item_id)
            return
        self._raise_for_status(response, "remove label", item_id=item_id, label=label)

    async def ensure_label(self, label: str, color: str, description: str) -> None:
        """Create the label, or update it when colour or description diverge."""
        color = color.lstrip("#").lower()
        path = f"/repos/{self.repository}/labels/{quote(label, safe='')}"

        response = await self._request("GET", path, operation="get label", label=label)

        if response.status_code == 404:
            payload: dict[str, Any] = {"name": label, "description": description}
            if color:
                payload["color"] = color
            response = await self._request(
                "POST",
                f"/repos/{self.repository}/labels",
                json=payload,
                operation="create label",
                label=label,
            )
            self._raise_for_status(response, "create label", label=label)
            logger.info("Created label '%s'", label)
            return

        self._raise_for_status(response, "get label", label=label)
        current = self._json(response, "get label", label=label)
        color_changed = bool(color) and (current.get("color") or "").lower() != color
        description_changed = (current.get("description") or "") != description
        if not (color_changed or description_changed):
            return

        payload = {"description": description}
        if color:
            payload["color"] = color
        response = await self._request(
            "PATCH", path, json=payload, operation="update label", label=label
        )
        self._raise_for_status(response, "update label", label=label)
        logger.info("Updated label '%s'", label)

    async def publish_dashboard(
        self, title: str, body: str, label: str, existing_id: Optional[int] = None
    ) -> None:
        """Update the dashboard issue in place, or create it."""
        payload = {"title": title, "body": body, "labels": [label]}

        if existing_id is not None:
            response = await self._request(
                "PATCH",
                f"/repos/{self.repository}/issues/{existing_id}",
                json=payload,
                operation="update dashboard",
                item_id=existing_id,
            )
            self._raise_for_status(response, "update dashboard", item_id=existing_id)
            logger.info("Updated dashboard issue #%d", existing_id)
            return

        response = await self._request(
            "POST",
            f"/repos/{self.repository}/issues",
            json=payload,
            operation="create dashboard",
        )
        self._raise_for_status(response, "create dashboard")
        logger.info("Created dashboard issue '%s'", title)

    async def _graphql(self, query: str, variables: dict[str, Any], operation: str) -> dict:
        """Run a GraphQL query and return its ``data`` payload."""
        response = await self._request(
            "POST",
            "/graphql",
            json={"query": query, "variables": variables},
            operation=operation,
        )
        self._raise_for_status(response, operation)

        payload = self._json(response, operation)
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(error.get("message", str(error)) for error in errors)
            raise TrackerError(operation, f"GraphQL error: {messages}")

        return payload.get("data") or {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        operation: str = "request",
        item_id: Optional[int] = None,
        label: Optional[str] = None,
    ) -> httpx.Response:
        """Send a request with retries on rate limits, server and network errors."""
        response: Optional[httpx.Response] = None

        for attempt in range(self.max_retries):
            is_last = attempt == self.max_retries - 1
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(
                        method,
                        f"{self.api_url}{path}",
                        headers=self._get_headers(),
                        json=json,
                    )
            except httpx.RequestError as e:
                if not is_last:
                    retry_delay = self.initial_retry_delay * (2 ** attempt)
                    logger.warning(
                        "Network error during %s, retrying after %.1fs: %s",
                        operation, retry_delay, e,
                    )
                    await asyncio.sleep(retry_delay)
                    continue
                raise TrackerError(
                    operation, f"Network error: {e}", item_id=item_id, label=label
                ) from e

            if self._is_retryable(response) and not is_last:
                retry_delay = self._get_retry_delay(response, attempt)
                logger.warning(
                    "HTTP %d during %s, retrying after %.1fs (attempt %d/%d)",
                    response.status_code, operation, retry_delay,
                    attempt + 1, self.max_retries,
                )
                await asyncio.sleep(retry_delay)
                continue

            return response

        return response

    def _is_retryable(self, response: httpx.Response) -> bool:
        if response.status_code == 429 or response.status_code >= 500:
            return True
        return response.status_code == 403 and "rate limit" in response.text.lower()

    def _get_retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Calculate retry delay from response headers or use exponential backoff."""
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass

        return self.initial_retry_delay * (2 ** attempt)

    def _json(
        self,
        response: httpx.Response,
        operation: str,
        item_id: Optional[int] = None,
        label: Optional[str] = None,
    ) -> dict:
        """Decode a JSON object body, or raise a TrackerError."""
        try:
            payload = response.json()
        except ValueError as e:
            raise TrackerError(
                operation,
                f"Invalid JSON response (HTTP {response.status_code}): {e}",
                item_id=item_id,
                label=label,
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise TrackerError(
                operation,
                f"Unexpected response body: {type(payload).__name__}",
                item_id=item_id,
                label=label,
                status_code=response.status_code,
            )
        return payload

    def _raise_for_status(
        self,
        response: httpx.Response,
        operation: str,
        item_id: Optional[int] = None,
        label: Optional[str] = None,
    ) -> None:
        if response.status_code < 400:
            return

        try:
            message = self._json(response, operation).get("message") or response.text
        except TrackerError:
            message = response.text

        raise TrackerError(
            operation,
            f"HTTP {response.status_code}: {message}",
            item_id=item_id,
            label=label,
            status_code=response.status_code,
        )

    def _item_from_node(self, node: dict, kind: ItemKind) -> Item:
        return Item(
            id=node["number"],
            title=node["title"],
            positive_reactions=node["positive"]["totalCount"],
            negative_reactions=node["negative"]["totalCount"],
            labels=[label["name"] for label in node["labels"]["nodes"]],
            kind=kind,
        )

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"Bearer {self.token}",
        }
