# 참여 알림 아웃박스: 트랜잭션 안에서 기록, commit 후 발행
#
# - record_event: 상태 변경과 같은 세션에 ParticipationEvent 추가 (commit은 호출자)
# - dispatch_events: commit 이후 호출. Redis 발행 성공 시 dispatched_at 기록
# - dispatch_pending_events: 발행 실패로 남은 행 재발행 (at-least-once, 구독자는 event_id로 중복 제거)

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.models.participant import ActivityParticipant
from app.models.participation_event import ParticipationEvent, _new_event_id
from app.realtime import participation_pubsub

logger = logging.getLogger("activities.outbox")

OUTBOX_BATCH_SIZE = int(os.getenv("OUTBOX_BATCH_SIZE", "100"))

# 세션 info에 현재 트랜잭션에서 기록한 이벤트 id 목록 보관 (엔진이 commit 후 꺼내 감)
EVENT_IDS_KEY = "participation_event_ids"

# Participation event types
EVENT_JOINED = "activity.joined"
EVENT_WAITLISTED = "activity.waitlisted"
EVENT_APPROVAL_PENDING = "activity.approval_pending"
EVENT_CANCELLED = "activity.cancelled"
EVENT_PROMOTED = "activity.promoted"
EVENT_APPROVED = "activity.approved"
EVENT_REJECTED = "activity.rejected"


def record_event(
    db: Session,
    participant: ActivityParticipant,
    user_id: str,
    event_type: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> ParticipationEvent:
    """
    아웃박스에 이벤트 기록. participant.id가 필요하므로 먼저 flush.

    ⚠️ commit 하지 않음. 트랜잭션이 롤백되면 이벤트도 함께 사라진다.
    """
    if participant.id is None:
        db.flush()
    event = ParticipationEvent(
        id=_new_event_id(),
        activity_id=participant.activity_id,
        participant_id=participant.id,
        user_id=user_id,
        event_type=event_type,
        payload=metadata or None,
        attempts=0,
    )
    db.add(event)
    db.info.setdefault(EVENT_IDS_KEY, []).append(event.id)
    return event


def _event_payload(event: ParticipationEvent) -> Dict[str, Any]:
    return {
        "type": event.event_type,
        "event_id": event.id,
        "activity_id": event.activity_id,
        "participant_id": event.participant_id,
        "user_id": event.user_id,
        "metadata": event.payload or {},
        "ts": datetime.now(timezone.utc).isoformat(),
    }


async def _dispatch(db: Session, events: Sequence[ParticipationEvent]) -> int:
    """이벤트 발행 후 성공한 것만 dispatched_at 기록. 발행 실패는 로그만 남기고 다음 재발행 때 다시 시도."""
    delivered = 0
    for event in events:
        event.attempts = (event.attempts or 0) + 1
        ok = await participation_pubsub.publish_participation_event(_event_payload(event))
        if ok:
            event.dispatched_at = datetime.now(timezone.utc)
            delivered += 1
        else:
            logger.warning(
                f"Participation event delivery failed: event={event.id}, "
                f"type={event.event_type}, attempts={event.attempts}"
            )
    try:
        db.commit()
    except Exception:
        # 발행 표시 저장 실패 → 재발행 대상으로 남음 (구독자가 event_id로 중복 제거)
        db.rollback()
        logger.exception("Failed to mark participation events as dispatched")
    return delivered


async def dispatch_events(db: Session, event_ids: List[str]) -> int:
    """
    방금 commit된 트랜잭션의 이벤트 발행. 반환: 발행 성공 건수.

    상태 변경은 이미 commit된 뒤라 여기서 난 오류는 호출자에게 올리지 않음.
    남은 이벤트는 dispatch_pending_events가 다시 발행.
    """
    if not event_ids:
        return 0
    try:
        events = (
            db.query(ParticipationEvent)
            .filter(
                ParticipationEvent.id.in_(event_ids),
                ParticipationEvent.dispatched_at.is_(None),
            )
            .order_by(ParticipationEvent.created_at, ParticipationEvent.id)
            .all()
        )
        # 같은 트랜잭션 안에서는 created_at이 같을 수 있으므로 기록 순서대로 재정렬
        order = {event_id: i for i, event_id in enumerate(event_ids)}
        events.sort(key=lambda e: order.get(e.id, len(order)))
        return await _dispatch(db, events)
    except Exception:
        db.rollback()
        logger.exception(f"Participation event dispatch failed, left for redelivery: events={event_ids}")
        return 0


async def dispatch_pending_events(db: Session, limit: int = OUTBOX_BATCH_SIZE) -> int:
    """미발행 이벤트 재발행. 여러 인스턴스가 동시에 돌아도 SKIP LOCKED로 같은 행을 잡지 않음."""
    events = (
        db.query(ParticipationEvent)
        .filter(ParticipationEvent.dispatched_at.is_(None))
        .order_by(ParticipationEvent.created_at, ParticipationEvent.id)
        .limit(limit)
        .with_for_update(skip_locked=True)
        .all()
    )
    if not events:
        db.rollback()
        return 0
    return await _dispatch(db, events)
