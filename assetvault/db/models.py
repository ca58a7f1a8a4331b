"""SQLAlchemy ORM models."""
import uuid
from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from assetvault.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(64), unique=True, nullable=False)
    configs = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    strategies = relationship("Strategy", secondary="group_strategy", back_populates="groups")


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=True, index=True)
    name = Column(String(128), nullable=False)
    email = Column(String(255), unique=True)
    used_capacity = Column(BigInteger, nullable=False, default=0)
    configs = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    group = relationship("Group")


class Strategy(Base):
    __tablename__ = "strategies"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    key = Column(String(32), nullable=False, default="local")
    name = Column(String(64), nullable=False)
    intro = Column(String(255))
    configs = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    groups = relationship("Group", secondary="group_strategy", back_populates="strategies")


class GroupStrategy(Base):
    __tablename__ = "group_strategy"

    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    strategy_id = Column(String(36), ForeignKey("strategies.id", ondelete="CASCADE"), primary_key=True)


class Asset(Base):
    __tablename__ = "assets"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    group_id = Column(String(36), nullable=True, index=True)
    strategy_id = Column(String(36), ForeignKey("strategies.id"), nullable=True, index=True)
    key = Column(String(64), unique=True, nullable=False)
    path = Column(String(512), nullable=False)
    relative_path = Column(String(512), nullable=False, default="", index=True)
    name = Column(String(255), nullable=False)
    original_name = Column(String(255))
    size = Column(BigInteger, nullable=False)
    mime_type = Column(String(64))
    extension = Column(String(32))
    checksum_md5 = Column(String(32))
    checksum_sha1 = Column(String(40))
    visibility = Column(String(16), nullable=False, default="private")
    storage_provider = Column(String(32), nullable=False, default="local")
    public_url = Column(String(1024), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("Account")
    strategy = relationship("Strategy")
