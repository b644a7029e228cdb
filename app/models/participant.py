# ActivityParticipant 모델: 활동 참여 (확정/대기/승인대기/취소)

from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base


class ParticipantStatus(str, PyEnum):
    """참여 상태. CANCELLED는 종료 상태 (행은 감사용으로 남김, 재참여 시 같은 행 재사용)."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"


class ActivityParticipant(Base):
    """
    참여 테이블. (activity_id, profile_id) 쌍당 행 1개.

    - waitlist_position은 status == waitlisted 일 때만 값이 있고, 활동별로 1..N 연속.
    - joined_at / approved_at / cancelled_at 은 전이 시점에 한 번만 기록.
    """

    __tablename__ = "activity_participants"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    profile_id = Column(Integer, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ParticipantStatus.PENDING.value)
    waitlist_position = Column(Integer, nullable=True)
    approval_message = Column(String(500), nullable=True)
    invite_code = Column(String(64), nullable=True)  # 불투명 값, 그대로 저장만 함
    joined_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    profile = relationship("UserProfile")

    __table_args__ = (
        UniqueConstraint("activity_id", "profile_id", name="uq_participant_activity_profile"),
        Index("ix_participants_activity_status", "activity_id", "status"),
        # waitlist_position은 waitlisted 일 때만 존재
        CheckConstraint(
            "(status = 'waitlisted') = (waitlist_position IS NOT NULL)",
            name="ck_participants_waitlist_position",
        ),
    )
