# course_chat/config/settings.py
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


class Settings(BaseSettings):
    # 🔵 Main database (PostgreSQL). DATABASE_URL_OVERRIDE wins when set.
    database_url_override: str | None = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "course_chat"
    db_user: str = "postgres"
    db_password: str = ""

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    app_prefix: str = ""
    cors_origins_raw: str = "http://localhost:8081,http://localhost:19006"
    socketio_async_mode: str = "eventlet"

    # tokens are issued by the external identity provider, we only verify them
    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "course-chat-auth"
    jwt_audience: str = "course-chat-app"
    jwt_access_minutes: int = 60

    # chat policy (seconds)
    presence_heartbeat_seconds: float = 30.0
    presence_stale_seconds: float = 120.0
    typing_ttl_seconds: float = 5.0
    max_message_length: int = 4000

    general_channels_raw: str = "GENERAL"
    lecturer_channels_raw: str = "FACULTY"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("db_host", "db_name", "db_user", "db_password", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override

        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)

        return f"postgresql+psycopg2://{user}:{password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.cors_origins_raw)

    @property
    def general_channels(self) -> list[str]:
        return [c.upper() for c in _split_csv(self.general_channels_raw)]

    @property
    def lecturer_channels(self) -> list[str]:
        return [c.upper() for c in _split_csv(self.lecturer_channels_raw)]


settings = Settings()
