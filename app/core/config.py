from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    # keyed hash for refresh / email tokens at rest; falls back to JWT_SECRET_KEY
    TOKEN_HASH_SECRET: Optional[str] = None
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    PASSWORD_RESET_EXPIRE_HOURS: int = 1

    # email
    MAIL_FROM: str = "noreply@localhost"
    MAIL_PASSWORD: str = ""
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587

    # Banco de dados
    DATABASE_URL: str
    SQL_ECHO: bool = False

    # app
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    ANALYTICS_DEFAULT_DAYS: int = 30

    # rate limits (per client IP)
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: int = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    PASSWORD_RESET_RATE_LIMIT: int = 3
    PASSWORD_RESET_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    EMAIL_VERIFICATION_RATE_LIMIT: int = 3
    EMAIL_VERIFICATION_RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60

    # cloudinary
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # shopify
    SHOPIFY_API_VERSION: str = "2024-10"
    SHOPIFY_APP_URL: Optional[str] = None

    @property
    def token_hash_secret(self) -> str:
        return self.TOKEN_HASH_SECRET or self.JWT_SECRET_KEY

    class Config:
        env_file = ".env"


settings = Settings()
