"""API dependencies"""

from typing import Generator, Optional

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from agriprice.core.config import settings
from agriprice.core.db import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Database session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>`` when a secret is configured."""
    secret = settings.CRON_SECRET
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
