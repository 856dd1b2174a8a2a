class MessagingError(Exception):
    """Base class for errors surfaced to the caller of a messaging operation."""

    code = "messaging_error"
    status_code = 400
    default_reason = "Messaging request failed"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class NotAuthenticated(MessagingError):
    code = "not_authenticated"
    status_code = 401
    default_reason = "Not authenticated"


class SelfTargetError(MessagingError):
    code = "self_target"
    default_reason = "Cannot start a conversation with yourself"


class EmptyContentError(MessagingError):
    code = "empty_content"
    default_reason = "Message content cannot be empty"


class ContentTooLongError(MessagingError):
    code = "content_too_long"
    default_reason = "Message content is too long"


class BlockedError(MessagingError):
    code = "blocked"
    status_code = 403
    default_reason = "You cannot send messages to this user"


class RateLimitExceeded(MessagingError):
    code = "rate_limited"
    status_code = 429
    default_reason = "Rate limit exceeded"


class ConversationNotFound(MessagingError):
    code = "conversation_not_found"
    status_code = 404
    default_reason = "Conversation not found"


class NotParticipant(MessagingError):
    code = "not_participant"
    status_code = 403
    default_reason = "You are not a participant in this conversation"
