# Activity 모델: 호스트가 여는 정원제 그룹 활동 (참여 엔진에서는 읽기 전용)

from enum import Enum as PyEnum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.models.base import Base


class ActivityStatus(str, PyEnum):
    """활동 상태. PUBLISHED 상태에서만 새 참여 신청을 받는다."""

    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# DB에는 String(20)으로 저장 (마이그레이션 단순화). 앱에서는 ActivityStatus로 비교.
STATUS_DEFAULT = ActivityStatus.DRAFT.value


class Activity(Base):
    """활동 테이블. host_id는 외부 인증 시스템의 사용자 id (프로필 id 아님)."""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    host_id = Column(String(64), nullable=False, index=True)  # 호스트의 외부 사용자 id
    title = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_DEFAULT, server_default=STATUS_DEFAULT)
    max_participants = Column(Integer, nullable=False)  # 확정(confirmed) 인원 상한, > 0
    is_public = Column(Boolean, nullable=False, default=True)  # False면 호스트 승인 필요
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (CheckConstraint("max_participants > 0", name="ck_activities_max_participants_positive"),)
