# ParticipationEvent 모델: 참여 알림 아웃박스
# 상태 변경과 같은 트랜잭션에서 기록 → commit 후 Redis로 발행 (재시도돼도 알림 중복 발행 없음)

import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.models.base import Base


def _new_event_id() -> str:
    return str(uuid.uuid4())


class ParticipationEvent(Base):
    """아웃박스 테이블. id(uuid)가 구독자 측 중복 제거 키. dispatched_at이 NULL이면 미발행."""

    __tablename__ = "participation_events"

    id = Column(String(36), primary_key=True, default=_new_event_id)
    activity_id = Column(Integer, nullable=False, index=True)
    participant_id = Column(Integer, nullable=False)
    user_id = Column(String(64), nullable=False)  # 알림 받을 사용자 (외부 id)
    event_type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=True)  # 부가 metadata (waitlistPosition, message 등)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    dispatched_at = Column(DateTime(timezone=True), nullable=True, index=True)
