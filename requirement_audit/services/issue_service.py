"""
Issue Service — creates tracker tickets for requirements entering a sprint.

Ticket creation is a side effect only: failures are logged and the
requirement is left without an issue key.  In mock mode tickets are
numbered in memory and no HTTP call is made.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.auth import HTTPBasicAuth

from requirement_audit.config import Settings, get_settings
from requirement_audit.exceptions import IssueTrackerError
from requirement_audit.models.schemas import SprintRequirement

logger = logging.getLogger(__name__)


class IssueService:
    """Issue tracker client (Jira REST v3 in live mode)."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.mock_mode = self.settings.mock_mode
        self._created: list[dict[str, Any]] = []

    def create_issues(self, requirements: list[SprintRequirement]) -> dict[str, str]:
        """
        Create one ticket per requirement.
        Returns requirement id → issue key for the tickets that were created.
        """
        keys: dict[str, str] = {}
        for req in requirements:
            try:
                keys[req.id] = self.create_issue(req)
            except IssueTrackerError as e:
                logger.warning(f"Issue creation failed for {req.id}: {e}")
        logger.info(f"Created {len(keys)}/{len(requirements)} tracker issues")
        return keys

    def create_issue(self, req: SprintRequirement) -> str:
        summary = f"Audit {req.section} {req.heading}".strip()
        if self.mock_mode:
            key = f"{self.settings.issue_tracker_project}-{len(self._created) + 1}"
            self._created.append({"key": key, "requirement_id": req.id, "summary": summary})
            logger.debug(f"[MOCK] Created issue {key} for {req.id}")
            return key

        payload = {
            "fields": {
                "project": {"key": self.settings.issue_tracker_project},
                "summary": summary,
                "description": _text_to_adf(
                    f"Requirement {req.id} from catalog '{req.catalog_title}' "
                    f"selected for audit (risk {req.risk:.1f})."
                ),
                "issuetype": {"name": self.settings.issue_tracker_issue_type},
            }
        }
        data = self._post("/rest/api/3/issue", payload)
        key = data.get("key")
        if not key:
            raise IssueTrackerError(f"Tracker response has no issue key: {data}")
        return key

    def created_issues(self) -> list[dict[str, Any]]:
        """Tickets recorded in mock mode."""
        return list(self._created)

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        base_url = self.settings.issue_tracker_url.rstrip("/")
        if not base_url:
            raise IssueTrackerError("issue_tracker_url is not configured")
        try:
            response = requests.post(
                f"{base_url}{endpoint}",
                auth=HTTPBasicAuth(
                    self.settings.issue_tracker_user,
                    self.settings.issue_tracker_token,
                ),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                json=payload,
                timeout=30,
            )
            response.raise_for_status()
            return response.json() if response.content else {}
        except requests.exceptions.RequestException as e:
            raise IssueTrackerError(f"Issue tracker request failed: {e}") from e


def _text_to_adf(text: str) -> dict[str, Any]:
    """Wrap plain text in a single-paragraph Atlassian Document Format body."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }
