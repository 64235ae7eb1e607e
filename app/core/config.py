from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "What Bird"
    # Name shown in the wallet sign-in challenge
    APP_NAME: str = "What Bird"
    # Application settings
    PORT: int = 8000
    HOST: str | None = None
    VERSION: str = "1.0.0"
    DOC_PASSWORD: str | None = None
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./whatbird.db"
    AUTO_CREATE_TABLES: bool = True

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS256"
    TOKEN_AUDIENCE: str = "authenticated"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 3600 # 1 hour
    CHALLENGE_EXPIRY_SECONDS: int = 300 # 5 minutes
    CHALLENGE_CLOCK_SKEW_SECONDS: int = 30
    REFRESH_TOKENS_ENABLED: bool = True
    REFRESH_TOKEN_EXPIRE_SECONDS: int = 30 * 24 * 3600 # 30 days
    WALLET_EMAIL_DOMAIN: str = "solana.wallet"

    # Cookie settings, COOKIE_SECURE=None follows ENVIRONMENT
    COOKIE_SECURE: bool | None = None
    COOKIE_DOMAIN: str | None = None
    LOGIN_PAGE_PATH: str = "/auth"

    # Debug settings
    DEBUG: bool = False

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cookie_secure(self) -> bool:
        if self.COOKIE_SECURE is not None:
            return self.COOKIE_SECURE
        return self.is_production or bool(self.SSL_CERT)

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
