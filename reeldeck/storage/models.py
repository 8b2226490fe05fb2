"""SQLAlchemy ORM models for ReelDeck."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reeldeck.storage.db import Base


class Document(Base):
    """Named JSON document in the local key-value store."""

    __tablename__ = "documents"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
