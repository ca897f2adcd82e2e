"""ORM models for the persisted tables."""

from datetime import datetime
from typing import Any

from sqlalchemy import CHAR, BigInteger, Boolean, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGINT autoincrement is not honoured by SQLite, which only auto-assigns INTEGER keys
_IdentityKey = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


class Vote(Base):
    """A single cast vote. Rows are written by request handlers."""

    __tablename__ = "votes"

    vote_id: Mapped[int] = mapped_column(_IdentityKey, primary_key=True, autoincrement=True)
    time_cast: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    candidate: Mapped[str] = mapped_column(CHAR(6), nullable=False)

    def __repr__(self) -> str:
        return f"Vote(vote_id={self.vote_id!r}, candidate={self.candidate!r})"


class TestingModel(Base):
    """Identity-keyed row carrying an ``active`` flag, true unless set otherwise."""

    __tablename__ = "Testing_model"

    id: Mapped[int] = mapped_column("id", _IdentityKey, primary_key=True, autoincrement=True)
    active: Mapped[bool] = mapped_column("active", Boolean, nullable=False, default=True)

    def __init__(self, **kwargs: Any):
        kwargs.setdefault("active", True)
        super().__init__(**kwargs)
