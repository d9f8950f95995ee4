# tpos_sync/models/credentials.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from tpos_sync.db import Base

class TposCredential(Base):
    __tablename__ = "tpos_credentials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_type: Mapped[str] = mapped_column(String(32), index=True)       # e.g. "tpos", "facebook"
    bearer_token: Mapped[str | None] = mapped_column(Text, nullable=True)  # rotated externally
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
