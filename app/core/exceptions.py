# app/core/exceptions.py
class MeetingBotError(RuntimeError):
    """
    Base class for domain errors raised by the meeting bot services.
    """


class RuleNotFoundError(MeetingBotError, LookupError):
    def __init__(self, rule_id: int) -> None:
        super().__init__(f"Rule with id {rule_id} not found.")
        self.rule_id = rule_id


class MeetingNotFoundError(MeetingBotError, LookupError):
    def __init__(self, meeting_id: int) -> None:
        super().__init__(f"Meeting with id {meeting_id} not found.")
        self.meeting_id = meeting_id


class AccountNotFoundError(MeetingBotError, LookupError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"Account with id {account_id} not found.")
        self.account_id = account_id


class BotAlreadyInvitedError(MeetingBotError):
    """
    Raised when a manual invite is requested for a meeting whose bot
    invitation already succeeded.
    """

    def __init__(self, meeting_id: int) -> None:
        super().__init__(f"Bot already invited to meeting {meeting_id}.")
        self.meeting_id = meeting_id


class NotificationError(MeetingBotError):
    """
    Raised when a user notification could not be delivered.
    """
