from decimal import Decimal
from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "bookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # Full URL wins over the postgres_* parts (sqlite for local runs and tests)
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    BREVO_API_KEY: str = ""
    MAIL_FROM: str = "no-reply@bookstore.local"
    STORE_NAME: str = "Online Bookstore"

    BULK_DISCOUNT_MIN_ITEMS: int = 5
    BULK_DISCOUNT_RATE: Decimal = Decimal("0.05")
    LOYALTY_DISCOUNT_MIN_ORDERS: int = 10
    LOYALTY_DISCOUNT_RATE: Decimal = Decimal("0.10")

    CLAIM_CODE_LENGTH: int = 8
    CLAIM_CODE_MAX_ATTEMPTS: int = 10

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"
        populate_by_name = True


settings = Settings()
