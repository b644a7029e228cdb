# 대기열 순번 재정렬 + 빈 자리 발생 시 대기자 승격
#
# ⚠️ commit/rollback 하지 않음. 호출자가 활동 행을 잠근 트랜잭션 안에서 호출.
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.crud.participant_crud import apply_transition, count_by_status, utcnow
from app.models.activity import Activity
from app.models.participant import ActivityParticipant, ParticipantStatus
from app.services import outbox

logger = logging.getLogger("activities.waitlist")


def _waitlisted_query(db: Session, activity_id: int):
    """대기자 조회 (waitlist_position 오름차순, 같으면 먼저 참여한 순)."""
    return (
        db.query(ActivityParticipant)
        .filter(
            ActivityParticipant.activity_id == activity_id,
            ActivityParticipant.status == ParticipantStatus.WAITLISTED.value,
        )
        .order_by(
            ActivityParticipant.waitlist_position,
            ActivityParticipant.joined_at,
            ActivityParticipant.id,
        )
    )


def resequence_waitlist(db: Session, activity_id: int) -> List[ActivityParticipant]:
    """
    대기 순번을 1, 2, 3, ... 으로 다시 매김 (빈 번호·중복 제거).

    - 순번이 바뀌는 행만 갱신 → 두 번 연속 호출하면 두 번째는 쓰기 없음
    - 반환: 재정렬된 대기자 목록
    """
    db.flush()
    waitlisted = _waitlisted_query(db, activity_id).all()
    changed = 0
    for index, participant in enumerate(waitlisted, start=1):
        if participant.waitlist_position != index:
            participant.waitlist_position = index
            changed += 1
    if changed:
        db.flush()
        logger.info(f"Waitlist resequenced: activity={activity_id}, size={len(waitlisted)}, changed={changed}")
    return waitlisted


def promote_next_waitlisted(db: Session, activity: Activity) -> Optional[ActivityParticipant]:
    """
    확정 자리가 비었을 때 대기 1순위를 confirmed로 승격.

    - 확정 인원을 다시 세서 정원 미만일 때만 승격
    - 한 번 호출에 한 명만 승격 (연쇄 승격 없음)
    - 승격 후 대기열 재정렬
    반환: 승격된 참여자 또는 None
    """
    db.flush()
    confirmed_count = count_by_status(db, activity.id, ParticipantStatus.CONFIRMED.value)
    if confirmed_count >= activity.max_participants:
        return None

    next_in_line = _waitlisted_query(db, activity.id).first()
    if next_in_line is None:
        return None

    apply_transition(next_in_line, ParticipantStatus.CONFIRMED.value)
    next_in_line.waitlist_position = None
    next_in_line.approved_at = utcnow()
    db.flush()

    if next_in_line.profile is not None:
        outbox.record_event(db, next_in_line, next_in_line.profile.user_id, outbox.EVENT_PROMOTED)

    resequence_waitlist(db, activity.id)
    return next_in_line
