from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    groq_api_key: str
    groq_model: str = "llama-3.3-70b-versatile"

    # SMTP transport
    smtp_host: str
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_user: str
    smtp_pass: str
    sender_email: Optional[str] = None     # defaults to smtp_user
    sender_name: str = ""

    resume_path: str = "resume.pdf"
    data_dir: str = "data"

    # Dispatch throttle
    max_emails_per_run: int = 12
    email_interval_seconds: int = 300
    max_send_attempts: Optional[int] = None   # None = retry forever

    # Scheduled trigger
    schedule_cron: str = "0 11 * * *"
    schedule_timezone: str = "Asia/Kolkata"

    log_level: str = "INFO"
    log_file: str = "logs/coldapply.log"

    @property
    def from_address(self) -> str:
        return self.sender_email or self.smtp_user

    @property
    def resume_file(self) -> Path:
        return Path(self.resume_path).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
