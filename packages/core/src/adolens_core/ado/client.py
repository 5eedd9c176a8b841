"""Thin Azure DevOps REST client for pull-request context and threads.

Only the endpoints adolens needs are wrapped. Every response is classified by
status code so callers get AuthenticationError / NotFoundError / ApiError
instead of raw HTTP errors.
"""

from __future__ import annotations

import base64
import logging
from enum import IntEnum
from urllib.parse import quote

import requests

from adolens_core.errors import ApiError, AuthenticationError, NotFoundError

logger = logging.getLogger(__name__)

API_VERSION = "7.1"
BASE_URL = "https://dev.azure.com"
REQUEST_TIMEOUT = 30  # seconds


class ThreadStatus(IntEnum):
    ACTIVE = 1
    FIXED = 2
    WONT_FIX = 3
    CLOSED = 4
    PENDING = 5

    @classmethod
    def from_name(cls, name: str) -> ThreadStatus:
        key = "".join(ch for ch in name.lower() if ch.isalnum())
        for status in cls:
            if status.name.replace("_", "").lower() == key:
                return status
        raise ValueError(f"Unknown thread status: {name!r}")


def auth_header(token: str, scheme: str = "basic") -> str:
    if scheme == "bearer":
        return f"Bearer {token}"
    encoded = base64.b64encode(f":{token}".encode()).decode()
    return f"Basic {encoded}"


def latest_iteration(iterations: list[dict]) -> dict | None:
    """Pick the newest iteration: highest id first."""
    ordered = sorted(iterations, key=lambda it: it.get("id", 0), reverse=True)
    return ordered[0] if ordered else None


class AzureDevOpsClient:
    def __init__(
        self,
        organization: str,
        project: str,
        repository: str,
        token: str,
        auth_scheme: str = "basic",
        session: requests.Session | None = None,
    ):
        self.organization = organization
        self.project = project
        self.repository = repository
        self.repo_url = (
            f"{BASE_URL}/{quote(organization)}/{quote(project)}/_apis/git/repositories/{quote(repository)}"
        )
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": auth_header(token, auth_scheme),
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config) -> AzureDevOpsClient:
        return cls(
            organization=config.organization,
            project=config.project,
            repository=config.repository,
            token=config.ado_token,
            auth_scheme=config.ado_auth_scheme,
        )

    # ------------------------------------------------------------------ #
    # Transport                                                            #
    # ------------------------------------------------------------------ #

    def _request(self, method: str, path: str, json: dict | None = None) -> dict:
        url = f"{self.repo_url}{path}"
        logger.debug("ADO API %s %s", method, url)
        try:
            response = self.session.request(
                method, url, params={"api-version": API_VERSION}, json=json, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise ApiError(f"Request to Azure DevOps failed ({method} {url}): {e}")

        status = response.status_code
        # A bad PAT gets a 203 with an HTML sign-in page rather than a 401.
        if status in (401, 203):
            raise AuthenticationError(url, status_code=status)
        if status == 404:
            raise NotFoundError(
                f"Not found: {url}. Check the organization ({self.organization}), project ({self.project}), "
                f"repository ({self.repository}) and pull request id."
            )
        if not 200 <= status < 300:
            body = response.text
            raise ApiError(
                f"Azure DevOps API error {status} for {method} {url}: {body}", status_code=status, body=body
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Azure DevOps returned a non-JSON response for {method} {url}: {e}",
                status_code=status,
                body=response.text,
            )

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def get_pull_request(self, pr_id: int) -> dict:
        return self._request("GET", f"/pullRequests/{pr_id}")

    def list_iterations(self, pr_id: int) -> list[dict]:
        return self._request("GET", f"/pullRequests/{pr_id}/iterations").get("value", [])

    def get_latest_iteration(self, pr_id: int) -> dict:
        latest = latest_iteration(self.list_iterations(pr_id))
        if latest is None:
            raise NotFoundError(f"Pull request {pr_id} has no iterations.", status_code=None)
        return latest

    def get_iteration_changes(self, pr_id: int, iteration_id: int) -> list[dict]:
        data = self._request("GET", f"/pullRequests/{pr_id}/iterations/{iteration_id}/changes")
        return data.get("changeEntries", [])

    def list_iteration_commits(self, pr_id: int, iteration_id: int) -> list[dict]:
        data = self._request("GET", f"/pullRequests/{pr_id}/iterations/{iteration_id}/commits")
        return data.get("value", [])

    def list_threads(self, pr_id: int) -> list[dict]:
        return self._request("GET", f"/pullRequests/{pr_id}/threads").get("value", [])

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def create_thread(
        self,
        pr_id: int,
        content: str,
        status: ThreadStatus = ThreadStatus.ACTIVE,
        file_path: str | None = None,
        line: int | None = None,
    ) -> dict:
        body: dict = {
            "comments": [{"parentCommentId": 0, "content": content, "commentType": 1}],
            "status": int(status),
        }
        if file_path:
            if not file_path.startswith("/"):
                file_path = "/" + file_path
            context: dict = {"filePath": file_path}
            if line:
                context["rightFileStart"] = {"line": line, "offset": 1}
                context["rightFileEnd"] = {"line": line, "offset": 1}
            body["threadContext"] = context
        return self._request("POST", f"/pullRequests/{pr_id}/threads", json=body)

    def reply_to_thread(self, pr_id: int, thread_id: int, content: str, parent_comment_id: int = 1) -> dict:
        body = {"content": content, "parentCommentId": parent_comment_id, "commentType": 1}
        return self._request("POST", f"/pullRequests/{pr_id}/threads/{thread_id}/comments", json=body)

    def update_thread_status(self, pr_id: int, thread_id: int, status: ThreadStatus) -> dict:
        return self._request("PATCH", f"/pullRequests/{pr_id}/threads/{thread_id}", json={"status": int(status)})
