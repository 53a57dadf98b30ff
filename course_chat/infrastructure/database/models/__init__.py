# course_chat/infrastructure/database/models/__init__.py
# imported for side effects: every model must be registered on BaseModel.metadata

from course_chat.infrastructure.database.models.user_model import UserModel, UserCourseModel  # noqa: F401
from course_chat.infrastructure.database.models.channel_model import ChannelModel  # noqa: F401
from course_chat.infrastructure.database.models.message_model import MessageModel  # noqa: F401
from course_chat.infrastructure.database.models.message_read_model import MessageReadModel  # noqa: F401
from course_chat.infrastructure.database.models.message_reaction_model import MessageReactionModel  # noqa: F401
from course_chat.infrastructure.database.models.typing_indicator_model import TypingIndicatorModel  # noqa: F401
from course_chat.infrastructure.database.models.user_presence_model import UserPresenceModel  # noqa: F401
