# 참여 CRUD: 참여 신청 / 상태 전이 / 명단 조회
#
# ⚠️ 이 모듈의 함수는 commit/rollback 하지 않음. 트랜잭션은 participation_engine이 소유.
#    정원에 영향을 주는 호출 전에 반드시 활동 행을 FOR UPDATE로 잠가 둘 것.
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models.activity import Activity
from app.models.participant import ActivityParticipant, ParticipantStatus
from app.models.user import UserProfile
from app.services import outbox
from app.services.capacity_gate import decide_join_status, requires_host_approval
from app.services.errors import BadRequestError, NotFoundError
from app.services.participant_status import STATUS_PRIORITY, check_status_transition
from app.services.permissions import require_host

logger = logging.getLogger("activities.participation")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_participant(db: Session, activity_id: int, participant_id: int) -> ActivityParticipant:
    """참여 기록 조회. 없거나 다른 활동의 기록이면 NotFoundError."""
    participant = db.query(ActivityParticipant).filter(ActivityParticipant.id == participant_id).first()
    if participant is None or participant.activity_id != activity_id:
        raise NotFoundError("Participation record not found")
    return participant


def find_participation(db: Session, activity_id: int, profile_id: int) -> Optional[ActivityParticipant]:
    return (
        db.query(ActivityParticipant)
        .filter(
            ActivityParticipant.activity_id == activity_id,
            ActivityParticipant.profile_id == profile_id,
        )
        .first()
    )


def count_by_status(db: Session, activity_id: int, status: str) -> int:
    """현재 트랜잭션 기준 상태별 인원. 정원/대기열 길이는 별도 카운터 없이 항상 행에서 다시 계산."""
    return (
        db.query(func.count(ActivityParticipant.id))
        .filter(
            ActivityParticipant.activity_id == activity_id,
            ActivityParticipant.status == status,
        )
        .scalar()
    )


def apply_transition(participant: ActivityParticipant, target: str, actor: Optional[str] = None) -> None:
    """상태 전이 적용. 허용되지 않는 전이면 BadRequestError."""
    error = check_status_transition(participant.status, target)
    if error is not None:
        logger.warning(
            f"Invalid participant transition attempted: participant={participant.id}, "
            f"from={participant.status}, to={target}, actor={actor or 'system'}"
        )
        raise BadRequestError(error)

    old_status = participant.status
    participant.status = target
    logger.info(
        f"Participant state transition: participant={participant.id}, activity={participant.activity_id}, "
        f"from={old_status}, to={target}, actor={actor or 'system'}"
    )


def mark_cancelled(participant: ActivityParticipant, actor: Optional[str] = None) -> str:
    """status=cancelled, waitlist_position=NULL, cancelled_at=now. 반환: 이전 상태 (후속 보정 판단용)."""
    previous = participant.status
    apply_transition(participant, ParticipantStatus.CANCELLED.value, actor)
    participant.waitlist_position = None
    participant.cancelled_at = utcnow()
    return previous


def join_activity(
    db: Session,
    activity: Activity,
    profile: UserProfile,
    message: Optional[str] = None,
    invite_code: Optional[str] = None,
    requires_approval: Callable[[Activity], bool] = requires_host_approval,
) -> ActivityParticipant:
    """
    활동 참여 신청.

    - 취소되지 않은 기존 기록이 있으면 중복 신청 → BadRequestError
    - 취소된 기록이 있으면 그 행을 재사용 (joined_at은 비어 있을 때만 기록, cancelled_at 초기화)
    - 초기 상태는 capacity_gate가 같은 트랜잭션의 인원 수로 결정
    - 상태별 알림(joined / waitlisted / approval_pending)을 아웃박스에 기록

    ⚠️ 호출 전에 activity 행을 FOR UPDATE로 잠가야 동시 신청에도 정원이 지켜짐.
    """
    existing = find_participation(db, activity.id, profile.id)
    if existing is not None and existing.status != ParticipantStatus.CANCELLED.value:
        raise BadRequestError("You have already joined or requested to join this activity")

    confirmed_count = count_by_status(db, activity.id, ParticipantStatus.CONFIRMED.value)
    waitlisted_count = count_by_status(db, activity.id, ParticipantStatus.WAITLISTED.value)
    decision = decide_join_status(
        activity,
        profile.user_id,
        confirmed_count,
        waitlisted_count,
        requires_approval=requires_approval,
    )

    now = utcnow()
    if existing is not None:
        participant = existing
        participant.status = decision.status
        participant.waitlist_position = decision.waitlist_position
        if message is not None:
            participant.approval_message = message
        if invite_code is not None:
            participant.invite_code = invite_code
        if participant.joined_at is None:
            participant.joined_at = now
        participant.cancelled_at = None
    else:
        participant = ActivityParticipant(
            activity_id=activity.id,
            profile_id=profile.id,
            profile=profile,
            status=decision.status,
            waitlist_position=decision.waitlist_position,
            approval_message=message,
            invite_code=invite_code,
            joined_at=now,
        )
        db.add(participant)
    db.flush()

    logger.info(
        f"Participant joined: participant={participant.id}, activity={activity.id}, "
        f"profile={profile.id}, status={decision.status}, waitlist_position={decision.waitlist_position}, "
        f"rejoin={existing is not None}"
    )

    if decision.status == ParticipantStatus.CONFIRMED.value:
        outbox.record_event(db, participant, profile.user_id, outbox.EVENT_JOINED)
    elif decision.status == ParticipantStatus.WAITLISTED.value:
        outbox.record_event(
            db,
            participant,
            profile.user_id,
            outbox.EVENT_WAITLISTED,
            {"waitlistPosition": decision.waitlist_position},
        )
    else:
        outbox.record_event(db, participant, profile.user_id, outbox.EVENT_APPROVAL_PENDING)

    return participant


def list_participants(db: Session, activity: Activity, acting_user_id: str) -> List[ActivityParticipant]:
    """
    호스트 전용 명단 조회. 취소된 기록도 감사용으로 포함.

    정렬: 상태(confirmed < pending < waitlisted < cancelled) → waitlist_position 오름차순(NULL은 뒤)
          → joined_at 오름차순 → id
    """
    require_host(acting_user_id, activity, "Only the host can view the participant roster")

    status_order = case(STATUS_PRIORITY, value=ActivityParticipant.status, else_=len(STATUS_PRIORITY))
    return (
        db.query(ActivityParticipant)
        .filter(ActivityParticipant.activity_id == activity.id)
        .order_by(
            status_order,
            ActivityParticipant.waitlist_position.is_(None),
            ActivityParticipant.waitlist_position,
            ActivityParticipant.joined_at,
            ActivityParticipant.id,
        )
        .all()
    )
