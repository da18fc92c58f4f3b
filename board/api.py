# board/api.py
"""HTTP client for the taskboard API."""
from typing import Optional
import logging

import requests

from .config import BoardSettings

logger = logging.getLogger("taskboard.board.api")


class BoardAPIError(Exception):
    """
    Raised for non-2xx responses and transport failures.
    `status_code` is None when the request never got a response.
    """

    def __init__(self, message, status_code=None, detail=None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    @property
    def is_permission_error(self) -> bool:
        return self.status_code == 403

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class BoardAPIClient:
    def __init__(self, base_url, token=None, timeout=10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: BoardSettings, session=None) -> "BoardAPIClient":
        return cls(settings.api_url, token=settings.token, timeout=settings.timeout, session=session)

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}/{path.lstrip('/')}"
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.warning("Request failed: %s %s: %s", method, url, e)
            raise BoardAPIError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            detail = self._error_detail(response)
            logger.warning("API error: %s %s -> %s %s", method, url, response.status_code, detail)
            raise BoardAPIError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
                detail=detail,
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Non-JSON body: %s %s -> %s", method, url, response.status_code)
            raise BoardAPIError(
                f"{method} {url} returned a non-JSON body",
                status_code=response.status_code,
                detail=response.text or None,
            ) from e

    @staticmethod
    def _error_detail(response):
        try:
            body = response.json()
        except ValueError:
            return response.text or None
        if isinstance(body, dict) and "error" in body:
            return body["error"]
        return body

    # ---- projects -----------------------------------------------------

    def list_projects(self, status=None):
        params = {"status": status} if status else None
        return self._request("GET", "projects/", params=params)

    def get_project(self, project_id):
        return self._request("GET", f"projects/{project_id}/")

    def update_project(self, project_id, **fields):
        return self._request("PATCH", f"projects/{project_id}/", json=fields)

    def delete_project(self, project_id):
        self._request("DELETE", f"projects/{project_id}/")

    # ---- tasks --------------------------------------------------------

    def list_tasks(self, project_id, status=None):
        params = {"status": status} if status else None
        return self._request("GET", f"projects/{project_id}/tasks/", params=params)

    def create_task(self, project_id, title, **fields):
        return self._request("POST", f"projects/{project_id}/tasks/", json={"title": title, **fields})

    def update_task(self, task_id, **fields):
        return self._request("PATCH", f"tasks/{task_id}/", json=fields)

    def delete_task(self, task_id):
        self._request("DELETE", f"tasks/{task_id}/")

    def move_task(self, task_id, status, index):
        return self._request("POST", f"tasks/{task_id}/move/", json={"status": status, "index": index})
