# app/services/notifier.py
from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage

from app.core.config import get_settings
from app.core.exceptions import NotificationError
from app.schemas.meeting import MeetingRead
from app.schemas.rule import RuleRead
from app.services.account_store import SqlAlchemyAccountStore


def build_meeting_notification_body(meeting: MeetingRead, rule: RuleRead) -> str:
    """
    Build a plain-text body telling the account owner a rule fired.
    """
    lines: list[str] = []

    lines.append(f"Rule \"{rule.name}\" matched your meeting \"{meeting.title}\".")
    lines.append("")
    lines.append(f"Starts:    {meeting.start_time.isoformat()}")
    lines.append(f"Duration:  {meeting.duration_minutes} minutes")
    lines.append(f"Attendees: {len(meeting.attendees)}")
    if meeting.platform is not None:
        lines.append(f"Platform:  {meeting.platform.value}")
    if meeting.meeting_url:
        lines.append(f"Link:      {meeting.meeting_url}")
    lines.append(f"Bot invited: {'yes' if meeting.bot_invited else 'no'}")

    if rule.actions.custom_message:
        lines.append("")
        lines.append(rule.actions.custom_message)

    lines.append("")
    lines.append("Regards,")
    lines.append(get_settings().APP_NAME)

    return "\n".join(lines)


class EmailNotifier:
    """
    Sends rule notifications to the email address of the meeting's account.

    Returns False when email is not configured. Raises NotificationError when
    sending was attempted and failed; the processor treats that as non-fatal.
    """

    def __init__(self, accounts: SqlAlchemyAccountStore) -> None:
        self.accounts = accounts

    async def notify(self, meeting: MeetingRead, rule: RuleRead) -> bool:
        settings = get_settings()
        if not settings.SMTP_HOST or not settings.SMTP_FROM_ADDRESS:
            # Email system not configured
            return False

        account = await self.accounts.get(meeting.account_id)
        if account is None or not account.email:
            return False

        msg = EmailMessage()
        msg["Subject"] = f"[{settings.APP_NAME}] {meeting.title}"
        msg["From"] = settings.SMTP_FROM_ADDRESS
        msg["To"] = account.email
        msg.set_content(build_meeting_notification_body(meeting, rule))

        try:
            await asyncio.to_thread(_send, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Failed to email {account.email}: {exc}") from exc
        return True


def _send(msg: EmailMessage) -> None:
    settings = get_settings()
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as smtp:
        if settings.SMTP_USE_TLS:
            smtp.starttls()
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)
