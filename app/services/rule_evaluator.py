# app/services/rule_evaluator.py
from __future__ import annotations

from app.schemas.meeting import MeetingRead
from app.schemas.rule import RuleConditions, RuleRead


def _contains_any(haystack: str, needles: list[str]) -> bool:
    haystack = haystack.lower()
    return any(needle.lower() in haystack for needle in needles)


def _sunday_based_weekday(meeting: MeetingRead) -> int:
    # isoweekday(): Monday=1 .. Sunday=7  ->  Sunday=0 .. Saturday=6
    return meeting.start_time.isoweekday() % 7


class RuleEvaluator:
    """
    Decides whether a single rule's conditions match a single meeting.

    Rules
    -----
    1) Any title exclusion found in the title  => no match (veto)
    2) Duration (minutes) outside min/max      => no match
    3) Attendee count outside min/max          => no match
    4) No title keyword found in the title     => no match
    5) No attendee keyword among attendees     => no match
    6) Start "HH:MM" outside time_of_day       => no match
    7) Start weekday not in days_of_week       => no match
    8) Platform not in required_platforms      => no match
    9) Else                                    => match

    Note
    ----
    - Absent fields and empty lists impose no constraint, so a rule without
      conditions matches every meeting.
    - Keyword checks are case-insensitive substring matches.
    - Time of day and weekday are read from the start time as stored, with
      no timezone conversion.
    """

    @staticmethod
    def matches(rule: RuleRead, meeting: MeetingRead) -> bool:
        return RuleEvaluator.conditions_match(rule.conditions, meeting)

    @staticmethod
    def conditions_match(conditions: RuleConditions | None, meeting: MeetingRead) -> bool:
        if conditions is None:
            return True

        title = meeting.title or ""

        # Rule 1: exclusions veto everything else
        if conditions.title_exclusions and _contains_any(title, conditions.title_exclusions):
            return False

        # Rule 2: duration bounds
        if conditions.min_duration is not None or conditions.max_duration is not None:
            duration = meeting.duration_minutes
            if conditions.min_duration is not None and duration < conditions.min_duration:
                return False
            if conditions.max_duration is not None and duration > conditions.max_duration:
                return False

        # Rule 3: attendee count bounds
        if conditions.min_attendees is not None or conditions.max_attendees is not None:
            count = len(meeting.attendees)
            if conditions.min_attendees is not None and count < conditions.min_attendees:
                return False
            if conditions.max_attendees is not None and count > conditions.max_attendees:
                return False

        # Rule 4: title keywords
        if conditions.title_keywords and not _contains_any(title, conditions.title_keywords):
            return False

        # Rule 5: attendee keywords
        if conditions.attendee_keywords:
            attendees = " ".join(meeting.attendees)
            if not _contains_any(attendees, conditions.attendee_keywords):
                return False

        # Rule 6: time of day
        window = conditions.time_of_day
        if window is not None:
            start_hhmm = meeting.start_time.strftime("%H:%M")
            if start_hhmm < window.start or start_hhmm > window.end:
                return False

        # Rule 7: days of week
        if conditions.days_of_week and _sunday_based_weekday(meeting) not in conditions.days_of_week:
            return False

        # Rule 8: platforms
        if conditions.required_platforms and meeting.platform not in conditions.required_platforms:
            return False

        return True
