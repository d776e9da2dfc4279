# app/services/google_calendar_client.py
from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

DEFAULT_BASE_URL = "https://www.googleapis.com/calendar/v3"


class GoogleCalendarError(RuntimeError):
    """
    Raised when a Google Calendar API call fails or cannot be made.
    """


class GoogleCalendarClient:
    """
    Minimal Google Calendar v3 client bound to one account's access token.

    Responsibilities
    ----------------
    - Provide thin convenience methods for the event calls calendar sync needs.
    - Avoid leaking HTTP client details into the rest of the codebase.

    Notes
    -----
    - Token acquisition and refresh are handled elsewhere; this client only
      sends the bearer token it was given.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not access_token:
            raise GoogleCalendarError("An access token is required to call Google Calendar.")

        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> httpx.Response:
        """
        Low-level helper for issuing an authenticated HTTP request.

        `path` is either an absolute URL or a path relative to the base URL.
        """
        if path.startswith("http://") or path.startswith("https://"):
            url = path
        else:
            url = f"{self._base_url}/{path.lstrip('/')}"

        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                return await client.request(
                    method=method.upper(),
                    url=url,
                    headers=headers,
                    params=params,
                    json=json,
                )
        except httpx.HTTPError as exc:
            raise GoogleCalendarError(f"Google Calendar {method.upper()} {url} failed: {exc}") from exc

    async def _json(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        resp = await self._request(method, path, **kwargs)
        if resp.status_code // 100 != 2:
            raise GoogleCalendarError(
                f"Google Calendar {method.upper()} failed (status={resp.status_code}): {resp.text}"
            )
        return resp.json()

    @staticmethod
    def _events_path(calendar_id: str) -> str:
        return f"/calendars/{quote(calendar_id, safe='')}/events"

    async def list_events(
        self,
        calendar_id: str,
        *,
        time_min: str,
        time_max: str,
        max_results: int = 250,
    ) -> list[Dict[str, Any]]:
        """
        Return every single (expanded) event in the window, following pagination.
        """
        params: Dict[str, Any] = {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": max_results,
        }

        events: list[Dict[str, Any]] = []
        while True:
            payload = await self._json("GET", self._events_path(calendar_id), params=params)
            events.extend(payload.get("items", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                return events
            params = {**params, "pageToken": page_token}

    async def get_event(self, calendar_id: str, event_id: str) -> Dict[str, Any]:
        path = f"{self._events_path(calendar_id)}/{quote(event_id, safe='')}"
        return await self._json("GET", path)

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: Dict[str, Any],
        send_updates: str = "all",
    ) -> Dict[str, Any]:
        path = f"{self._events_path(calendar_id)}/{quote(event_id, safe='')}"
        return await self._json("PATCH", path, params={"sendUpdates": send_updates}, json=body)
