from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


class Settings(BaseSettings):
    """Settings for the bot."""

    BOT_TOKEN: str = Field(default=...)

    # Franchise backend
    API_BASE_URL: str = "http://localhost:8080"
    API_TIMEOUT: int = Field(
        default=30,
        description="Total timeout of a single backend request in seconds",
    )

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    DB_HOST: str = "localhost"
    DB_PORT: int = 5442
    DB_USER: str = "franchise_bot"
    DB_PASS: str = Field(default="franchise_bot")
    DB_BASE: str = "franchise_bot"
    DB_ECHO: bool = False
    DB_URL: str | None = Field(
        default=None,
        description="Full database URL, overrides DB_* fields when set",
    )

    # Paging
    PAGE_SIZE: int = Field(
        default=10,
        description="Page size for consultation and saved brand lists",
    )
    BRANDS_PAGE_SIZE: int = Field(
        default=12,
        description="Page size for the public brand catalogue",
    )

    CONSULTATION_TIME_SLOTS: list[str] = Field(
        default=[
            "09:00",
            "10:00",
            "11:00",
            "12:00",
            "13:00",
            "14:00",
            "15:00",
            "16:00",
            "17:00",
            "18:00",
        ],
        description="Time slots offered for consultations and reschedules",
    )

    @property
    def db_url(self) -> URL:
        """
        Assemble database URL from settings.

        :return: database URL.
        """
        if self.DB_URL:
            return URL(self.DB_URL)
        return URL.build(
            scheme="postgresql+asyncpg",
            host=self.DB_HOST,
            port=self.DB_PORT,
            user=self.DB_USER,
            password=self.DB_PASS,
            path=f"/{self.DB_BASE}",
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
