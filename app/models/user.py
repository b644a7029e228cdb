# UserProfile 모델

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from app.models.base import Base


class UserProfile(Base):
    """사용자 프로필 테이블. user_id(외부 인증 id) → 내부 프로필 id 매핑."""

    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    full_name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
