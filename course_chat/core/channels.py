# course_chat/core/channels.py
from course_chat.core.exceptions import ValidationError

MAX_CHANNEL_CODE_LENGTH = 20


def normalize_channel_code(raw: str | None) -> str:
    """Course codes are case-insensitive keys: " csm101 " -> "CSM101"."""
    code = (raw or "").strip().upper()
    if not code:
        raise ValidationError("Channel code is required.")
    if len(code) > MAX_CHANNEL_CODE_LENGTH:
        raise ValidationError("Channel code is too long.")
    return code
