from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    # Storage backend: "firestore" (default), "sql" for self-hosting, or "none"
    STORE_BACKEND: str = "firestore"

    # Firestore - either a service account JSON blob or a project id for
    # application default credentials (GCP, Vercel, ...)
    FIREBASE_SERVICE_ACCOUNT_KEY: str = ""
    FIREBASE_PROJECT_ID: str = ""
    WAITLIST_COLLECTION: str = "waitlist"

    # SQL backend - defaults to a local SQLite file, override for Postgres
    DATABASE_URL: str = "sqlite:///./waitlist.db"

    # Email: "none" only logs, "resend" or "smtp" send to the admin inbox
    EMAIL_PROVIDER: str = "none"

    # Resend (Email)
    RESEND_API_KEY: str = ""

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: str = ""
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""

    ADMIN_EMAIL: str = ""
    FROM_EMAIL: str = ""

    # App Settings
    LOG_LEVEL: str = "INFO"
    REGISTRATION_OPEN: bool = True
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:9002",
        "http://127.0.0.1:3000",
        "https://konecbo.com",
        "https://www.konecbo.com",
    ]

    class Config:
        # Use absolute path to .env file
        env_file = Path(__file__).parent.parent.parent / ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'


settings = Settings()
