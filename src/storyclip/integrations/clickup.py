"""ClickUp API v2 export of stories as tasks.

The exporter never holds a token itself: it asks the injected
:class:`~storyclip.credentials.TokenStore` on every request, so a
``storyclip logout`` takes effect immediately.
"""

import logging
from typing import Any

import requests

from storyclip.credentials import TokenStore
from storyclip.errors import ExportError
from storyclip.story.builder import build_story_prompt
from storyclip.story.schema import Story
from storyclip.timecode import format_timestamp

_logger = logging.getLogger(__name__)

CLICKUP_API_URL = "https://api.clickup.com/api/v2"


class ClickUpExporter:
    """Thin ClickUp client: workspace discovery and task creation."""

    def __init__(self, token_store: TokenStore, base_url: str = CLICKUP_API_URL, timeout_s: float = 15.0) -> None:
        self.token_store = token_store
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def validate_token(self) -> bool:
        """Return True if the stored token is accepted by the API."""
        try:
            self._request("GET", "/team")
        except ExportError:
            return False
        return True

    def list_spaces(self) -> list[dict]:
        spaces: list[dict] = []
        for team in self._request("GET", "/team").get("teams", []):
            spaces.extend(self._request("GET", f"/team/{team['id']}/space").get("spaces", []))
        return spaces

    def list_lists(self, space_id: str) -> list[dict]:
        """Return folderless lists plus the lists of every folder in *space_id*."""
        lists = list(self._request("GET", f"/space/{space_id}/list").get("lists", []))
        for folder in self._request("GET", f"/space/{space_id}/folder").get("folders", []):
            lists.extend(self._request("GET", f"/folder/{folder['id']}/list").get("lists", []))
        return lists

    def default_status(self, list_id: str) -> str:
        """Return the status with the lowest ``orderindex`` (usually "to do")."""
        statuses = self._request("GET", f"/list/{list_id}").get("statuses", [])
        if not statuses:
            raise ExportError(f"list {list_id} has no statuses")
        return min(statuses, key=lambda s: s.get("orderindex", 0))["status"]

    def export_story(self, list_id: str, story: Story, status: str | None = None) -> dict:
        """Create a task for *story* in *list_id* and return the API response."""
        payload = {
            "name": _task_name(story),
            "markdown_content": _task_markdown(story),
            "status": status or self.default_status(list_id),
        }
        task = self._request("POST", f"/list/{list_id}/task", json=payload)
        _logger.info("Exported story %s as ClickUp task %s", story.id, task.get("id"))
        return task

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> dict:
        token = self.token_store.get()
        if not token:
            raise ExportError("no ClickUp API token is stored")

        headers = {
            "Authorization": token if token.startswith("pk_") else f"Bearer {token}",
            "Content-Type": "application/json",
        }
        try:
            resp = requests.request(
                method,
                f"{self.base_url}{endpoint}",
                headers=headers,
                timeout=self.timeout_s,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise ExportError(str(exc)) from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not resp.ok:
            message = data.get("err") or data.get("error") or resp.reason
            raise ExportError(str(message), status_code=resp.status_code)
        return data


def _task_name(story: Story) -> str:
    for line in story.content.splitlines():
        line = line.strip().removeprefix("Title:").strip()
        if line:
            return line[:200]
    clip = story.clip_range
    return f"Clip {format_timestamp(clip.start)} - {format_timestamp(clip.end)}"


def _task_markdown(story: Story) -> str:
    sections = []
    if story.content:
        sections.append(story.content)
    sections.append("## Clip\n\n```\n" + build_story_prompt(story) + "\n```")
    return "\n\n".join(sections)
