# app/services/event_normalizer.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.schemas.meeting import MeetingPlatform, MeetingSyncData

_URL_PATTERN = re.compile(r"https?://[^\s<>\"]+")

_PLATFORM_HOSTS = (
    ("zoom.us", MeetingPlatform.ZOOM),
    ("meet.google.com", MeetingPlatform.MEET),
    ("teams.microsoft.com", MeetingPlatform.TEAMS),
    ("teams.live.com", MeetingPlatform.TEAMS),
)

_CONFERENCE_SOLUTIONS = {
    "hangoutsMeet": MeetingPlatform.MEET,
    "eventHangout": MeetingPlatform.MEET,
    "eventNamedHangout": MeetingPlatform.MEET,
    "addOn": None,
}


class EventNormalizer:
    """
    Converts raw Google Calendar event payloads into MeetingSyncData.

    This keeps the processor isolated from provider payload shapes.
    """

    @staticmethod
    def normalize(event: Dict[str, Any]) -> Optional[MeetingSyncData]:
        """
        Build MeetingSyncData from one event.

        Rules
        -----
        - Cancelled events and all-day events (no `dateTime`) yield None.
        - Start/end are normalized to aware UTC datetimes.
        - Attendees are the attendee emails, in event order; resources are skipped.
        - Platform comes from conferenceData, then hangoutLink, then any URL
          found in location/description. A location without a URL is in-person.
        """
        if event.get("status") == "cancelled":
            return None

        start = EventNormalizer._parse_event_time(event.get("start") or {})
        end = EventNormalizer._parse_event_time(event.get("end") or {})
        if start is None or end is None or not event.get("id"):
            return None

        attendees = [
            a["email"]
            for a in event.get("attendees") or []
            if a.get("email") and not a.get("resource", False)
        ]

        platform, meeting_url = EventNormalizer.detect_platform(event)

        return MeetingSyncData(
            external_event_id=event["id"],
            title=event.get("summary") or "(no title)",
            description=event.get("description"),
            start_time=start,
            end_time=end,
            attendees=attendees,
            meeting_url=meeting_url,
            platform=platform,
        )

    @staticmethod
    def detect_platform(event: Dict[str, Any]) -> tuple[MeetingPlatform, Optional[str]]:
        conference = event.get("conferenceData") or {}
        entry_url = None
        for entry in conference.get("entryPoints") or []:
            if entry.get("entryPointType") == "video" and entry.get("uri"):
                entry_url = entry["uri"]
                break

        if entry_url:
            by_host = EventNormalizer._platform_from_url(entry_url)
            if by_host is not None:
                return by_host, entry_url

        solution_type = ((conference.get("conferenceSolution") or {}).get("key") or {}).get("type")
        solution_platform = _CONFERENCE_SOLUTIONS.get(solution_type)
        if solution_platform is not None:
            return solution_platform, entry_url or event.get("hangoutLink")

        if event.get("hangoutLink"):
            return MeetingPlatform.MEET, event["hangoutLink"]

        for text in (event.get("location"), event.get("description")):
            for url in _URL_PATTERN.findall(text or ""):
                by_host = EventNormalizer._platform_from_url(url)
                if by_host is not None:
                    return by_host, url

        if entry_url:
            return MeetingPlatform.OTHER, entry_url
        if event.get("location"):
            return MeetingPlatform.IN_PERSON, None
        return MeetingPlatform.OTHER, None

    @staticmethod
    def _platform_from_url(url: str) -> Optional[MeetingPlatform]:
        lowered = url.lower()
        for host, platform in _PLATFORM_HOSTS:
            if host in lowered:
                return platform
        return None

    @staticmethod
    def _parse_event_time(value: Dict[str, Any]) -> Optional[datetime]:
        """
        Parse a Google `{dateTime, timeZone}` object into aware UTC.

        Returns None for all-day (`date` only) or unparseable values.
        """
        raw = value.get("dateTime")
        if not raw:
            return None
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
