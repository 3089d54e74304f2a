"""CareCompanion REST API adapter - HTTP client for tasks and medications."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

import requests

from carecompanion.config import Config, Tokens, load_config
from carecompanion.core.medications import Medication, MedicationScheduleEntry
from carecompanion.core.tasks import Task, to_iso

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
REQUEST_TIMEOUT = 30


class AuthenticationError(Exception):
    """Raised when the backend rejects or is missing the session token."""

    pass


class ApiError(Exception):
    """Raised when the backend answers with an error or cannot be reached."""

    def __init__(self, status: int, code: str, message: str):
        super().__init__(f"{message} ({code}, HTTP {status})" if status else message)
        self.status = status
        self.code = code
        self.message = message


class CareApiAdapter:
    """
    CareCompanion backend adapter.

    Implements CareRepository protocol. One request per call, no retries;
    the caller decides whether to try again. No business logic - just I/O.
    """

    def __init__(
        self,
        config: Config | None = None,
        tokens: Tokens | None = None,
        session: requests.Session | None = None,
    ):
        self.config = config or load_config()
        self.tokens = tokens or Tokens.load()
        self.tz = ZoneInfo(self.config.timezone)
        self._session = session or requests.Session()

    def _request(self, method: str, endpoint: str, params: dict | None = None, body: dict | None = None):
        """Make authenticated API request and return the decoded JSON body."""
        if not self.tokens.access_token:
            raise AuthenticationError("No access token. Run 'carecompanion auth' first.")

        url = f"{self.config.api_url}{API_PREFIX}{endpoint}"
        logger.debug(f"{method} {url} params={params}")
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=body,
                headers={"Authorization": f"Bearer {self.tokens.access_token}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ApiError(0, "NETWORK_ERROR", f"Could not reach {self.config.api_url}: {e}") from e

        if resp.status_code == 401:
            raise AuthenticationError("Session expired or invalid. Run 'carecompanion auth' again.")
        if not resp.ok:
            raise self._error_from(resp)
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    @staticmethod
    def _error_from(resp: requests.Response) -> ApiError:
        """Build an ApiError from a {"error": {"code", "message"}} body."""
        code, message = "HTTP_ERROR", resp.reason or "Request failed"
        try:
            error = resp.json().get("error") or {}
            code = error.get("code", code)
            message = error.get("message", message)
        except (ValueError, AttributeError):
            pass
        return ApiError(resp.status_code, code, message)

    def fetch_tasks(self, start: datetime, end: datetime, include_virtual: bool = True) -> list[Task]:
        """Fetch tasks (and virtual occurrences) in a date range."""
        params = {"startDate": to_iso(start), "endDate": to_iso(end)}
        if include_virtual:
            params["includeVirtual"] = "true"
        data = self._request("GET", "/care-tasks", params=params)
        return [Task.from_api(t, self.tz) for t in data.get("tasks", [])]

    def fetch_today_medications(self, patient_id: str) -> list[MedicationScheduleEntry]:
        """Fetch today's dose schedule with logged statuses."""
        data = self._request("GET", f"/patients/{patient_id}/medications/today")
        entries = []
        for item in data.get("schedule", []):
            entry = MedicationScheduleEntry.from_api(item, self.tz)
            if not entry.medication_id or entry.scheduled_time is None:
                logger.warning(
                    f"Skipping dose with no usable scheduledTime: "
                    f"{item.get('medicationName') or item.get('medicationId')!r}"
                )
                continue
            entries.append(entry)
        return entries

    def fetch_medications(self) -> list[Medication]:
        """Fetch medications including their schedule times."""
        data = self._request("GET", "/medications", params={"includeSchedules": "true"})
        return [Medication.from_api(m, self.tz) for m in data.get("medications", [])]

    def materialize(self, task_id: str, virtual_date: datetime | None) -> Task:
        """Turn a virtual occurrence into a concrete task."""
        body = {"virtualDate": to_iso(virtual_date)} if virtual_date else {}
        data = self._request("POST", f"/care-tasks/{task_id}/materialize", body=body)
        return Task.from_api(data["task"], self.tz)

    def update_task(self, task_id: str, updates: dict) -> Task:
        data = self._request("PUT", f"/care-tasks/{task_id}", body=updates)
        return Task.from_api(data["task"], self.tz)

    def update_series(self, task_id: str, updates: dict) -> Task:
        data = self._request("PUT", f"/care-tasks/{task_id}/series", body=updates)
        return Task.from_api(data["task"], self.tz)

    def complete_task(self, task_id: str, notes: str | None = None) -> Task:
        body = {"notes": notes} if notes else {}
        data = self._request("POST", f"/care-tasks/{task_id}/complete", body=body)
        return Task.from_api(data["task"], self.tz)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/care-tasks/{task_id}")

    def log_medication(
        self,
        medication_id: str,
        scheduled_time: datetime,
        status: str,
        notes: str | None = None,
    ) -> dict:
        """Record a dose as given, missed or refused."""
        body = {"scheduledTime": to_iso(scheduled_time), "status": status}
        if notes:
            body["notes"] = notes
        return self._request("POST", f"/medications/{medication_id}/log", body=body)
