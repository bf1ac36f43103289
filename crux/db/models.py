"""ORM tables for users and their deployed projects."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from .session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Stable id issued by the identity provider
    external_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    title = Column(String, nullable=False)
    # Template identifier the portfolio was generated from
    prompt = Column(Text, nullable=True)
    # templateId / originalName / finalName / deploymentId
    content_json = Column(JSON, nullable=False, default=dict)
    deployed_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
