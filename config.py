import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _origins() -> List[str]:
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    firebase_credentials: str = os.environ.get("FIREBASE_CREDENTIALS", "./firebase.json")
    bucket_name: str = os.environ.get("S3_BUCKET_NAME", "post-images")
    aws_region: str = os.environ.get("AWS_REGION", "us-east-2")
    aws_access_key_id: Optional[str] = os.environ.get("AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = os.environ.get("AWS_SECRET_ACCESS_KEY")
    public_base_url: Optional[str] = os.environ.get("S3_PUBLIC_BASE_URL")
    max_upload_bytes: int = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
    store_timeout: float = float(os.environ.get("STORE_TIMEOUT_SECONDS", 10))
    cors_origins: List[str] = field(default_factory=_origins)
    log_level: str = os.environ.get("LOG_LEVEL", "INFO")


settings = Settings()
