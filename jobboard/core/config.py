# jobboard/core/config.py
# Application settings (database URL, JWT secret, SMTP, notification outbox)
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str
    SQL_ECHO: bool = False
    CREATE_TABLES_ON_STARTUP: bool = True

    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # SMTP / email
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_USE_CREDENTIALS: bool = True
    EMAIL_FROM_ADDRESS: Optional[str] = None
    EMAIL_FROM_NAME: str = "FreelanceJobBoard"
    EMAIL_TIMEOUT_SECONDS: float = 30.0
    EMAIL_MAX_RETRY_ATTEMPTS: int = 3
    EMAIL_RETRY_DELAY_SECONDS: float = 1.0
    EMAIL_ENABLED: bool = True
    EMAIL_LOG_WHEN_DISABLED: bool = True

    # Notification outbox
    NOTIFICATION_MAX_EMAIL_ATTEMPTS: int = 5
    NOTIFICATION_DISPATCH_INTERVAL_SECONDS: float = 0  # 0 = no periodic loop
    NOTIFICATION_RETENTION_DAYS: int = 90

    # Uploads
    UPLOAD_DIR: str = "static/uploads"
    UPLOAD_URL_PREFIX: str = "/static/uploads"
    MAX_ATTACHMENT_BYTES: int = 10 * 1024 * 1024
    MAX_ATTACHMENTS_PER_REQUEST: int = 10

    # Used when building links inside emails
    FRONTEND_BASE_URL: str = "http://localhost:5173"

    class Config:
        env_file = ".env"

    def email_is_configured(self) -> bool:
        """SMTP delivery needs a server, a sender and, optionally, credentials."""
        if not self.SMTP_SERVER or not self.EMAIL_FROM_ADDRESS:
            return False
        if not 0 < self.SMTP_PORT <= 65535:
            return False
        if self.SMTP_USE_CREDENTIALS and not (self.SMTP_USERNAME and self.SMTP_PASSWORD):
            return False
        return "@" in self.EMAIL_FROM_ADDRESS


settings = Settings()
