"""Database table definition for stored entries"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field, SQLModel


class EntryRow(SQLModel, table=True):
    """One stored entry; the canonical fields are kept as their public JSON form"""
    __tablename__ = "entries"
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    title: Optional[str] = Field(default=None, index=True)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
