# course_chat/services/unread_service.py

from course_chat.core.channels import normalize_channel_code
from course_chat.core.exceptions import UnauthenticatedError
from course_chat.repositories.message_read_repository import MessageReadRepository


class UnreadService:
    """Unread = not sent by the user and user not in read_by, on non-deleted messages."""

    def __init__(self, read_repo: MessageReadRepository) -> None:
        self._read_repo = read_repo

    def unread_count(self, *, channel_code: str, user_id: str) -> int:
        if not user_id:
            raise UnauthenticatedError("User not authenticated.")
        return self._read_repo.count_unread(channel_code=normalize_channel_code(channel_code), user_id=user_id)

    def unread_counts_for_channels(self, *, channel_codes: list[str], user_id: str) -> dict[str, int]:
        if not user_id:
            raise UnauthenticatedError("User not authenticated.")

        codes = [normalize_channel_code(c) for c in channel_codes]
        counts = self._read_repo.count_unread_by_channel(channel_codes=codes, user_id=user_id)
        # every requested channel gets a badge, even at zero
        return {code: counts.get(code, 0) for code in codes}
