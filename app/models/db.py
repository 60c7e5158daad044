from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings
from datetime import datetime

connect_args = {}
if settings.database_url.startswith("sqlite"):  # pragma: no cover - used in tests
    connect_args["check_same_thread"] = False

engine = create_engine(settings.database_url, future=True, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


class CodeGeneration(Base):
    """Stores each finished generation/modification request and its outcome."""

    __tablename__ = "code_generations"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(10), nullable=False)  # generate, modify
    prompt = Column(Text, nullable=False)
    success = Column(Boolean, nullable=False, default=False)
    failure_reason = Column(String(32), nullable=True)
    message = Column(Text, nullable=True)
    html = Column(Text, nullable=True)
    css = Column(Text, nullable=True)
    js = Column(Text, nullable=True)
    tokens_sent = Column(Integer, nullable=True)
    tokens_received = Column(Integer, nullable=True)
    date_added = Column(DateTime, default=datetime.utcnow, nullable=False)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
