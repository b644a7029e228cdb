# 참여 엔진: 참여 / 취소 / 승인·거절 / 명단 조회의 진입점
#
# 트랜잭션 소유권은 이 모듈. 논리적 작업 1건 = DB 트랜잭션 1건.
# - 활동 행을 FOR UPDATE로 잠근 뒤 인원 수를 세고 쓰기 → 동시 요청에도 정원 초과 없음
# - 직렬화 실패/데드락/유니크 위반만 롤백 후 정해진 횟수만큼 재시도, 소진 시 ConflictError
# - 알림은 아웃박스에만 기록. 실제 발행은 commit 후 호출자가 outbox.dispatch_events로 수행
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.crud.activity_crud import get_activity
from app.crud.participant_crud import get_participant, join_activity, list_participants
from app.crud.profile_crud import resolve_profile
from app.models.activity import Activity
from app.models.participant import ActivityParticipant
from app.schemas.participation import ParticipantSummary
from app.services.capacity_gate import requires_host_approval
from app.services.cancellation import cancel_participation
from app.services.errors import ConflictError, ParticipationError
from app.services.moderation import moderate_participant
from app.services.outbox import EVENT_IDS_KEY

logger = logging.getLogger("activities.participation")

TX_MAX_RETRIES = int(os.getenv("PARTICIPATION_TX_MAX_RETRIES", "3"))

# PostgreSQL SQLSTATE: serialization_failure, deadlock_detected, lock_not_available (lock_timeout)
RETRYABLE_PGCODES = {"40001", "40P01", "55P03"}
UNIQUE_VIOLATION_PGCODE = "23505"

T = TypeVar("T")


@dataclass
class ParticipationResult:
    participation: ParticipantSummary
    event_ids: List[str] = field(default_factory=list)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # timezone 미지원 드라이버(SQLite 등)는 naive로 돌려주므로 UTC로 간주
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_summary(participant: ActivityParticipant) -> ParticipantSummary:
    profile = participant.profile
    return ParticipantSummary(
        id=participant.id,
        profile_id=participant.profile_id,
        user_id=profile.user_id if profile is not None else "",
        full_name=profile.full_name if profile is not None else None,
        status=participant.status,
        waitlist_position=participant.waitlist_position,
        approval_message=participant.approval_message,
        joined_at=_as_utc(participant.joined_at),
        approved_at=_as_utc(participant.approved_at),
        cancelled_at=_as_utc(participant.cancelled_at),
    )


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == UNIQUE_VIOLATION_PGCODE:
        return True
    # SQLite는 pgcode가 없어 메시지로 판별
    return "UNIQUE constraint failed" in str(orig)


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, IntegrityError):
        # 같은 (activity, profile)에 동시 INSERT → 재시도 시 기존 행을 보고 "already joined"
        # CHECK / FK 위반은 재시도해도 같은 결과라 그대로 전파
        return _is_unique_violation(exc)
    return getattr(getattr(exc, "orig", None), "pgcode", None) in RETRYABLE_PGCODES


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    max_attempts: Optional[int] = None,
) -> Tuple[T, List[str]]:
    """
    work(db)를 하나의 트랜잭션으로 실행하고 commit.

    - ParticipationError: 롤백 후 그대로 전파 (검증은 쓰기 전에 끝나므로 부분 반영 없음)
    - 재시도 가능한 DB 충돌: 롤백 후 재시도, max_attempts 소진 시 ConflictError
    반환: (work 결과, 이 트랜잭션에서 기록된 아웃박스 이벤트 id 목록)
    """
    attempts = max_attempts or TX_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        db.info[EVENT_IDS_KEY] = []
        try:
            result = work(db)
            db.commit()
        except ParticipationError:
            db.rollback()
            raise
        except (OperationalError, IntegrityError) as exc:
            db.rollback()
            if not _is_retryable(exc):
                raise
            logger.warning(f"Participation transaction conflict, retrying: attempt={attempt}/{attempts}, error={exc.orig!r}")
            continue
        except Exception:
            db.rollback()
            raise
        return result, list(db.info.pop(EVENT_IDS_KEY, []))

    db.info.pop(EVENT_IDS_KEY, None)
    raise ConflictError("The activity was modified concurrently, please retry")


def join(
    db: Session,
    activity_id: int,
    user_id: str,
    message: Optional[str] = None,
    invite_code: Optional[str] = None,
    requires_approval: Callable[[Activity], bool] = requires_host_approval,
) -> ParticipationResult:
    """활동 참여 신청. requires_approval은 멤버십 정책 등 외부에서 주입하는 승인 필요 여부 판정."""

    def work(tx: Session) -> ParticipantSummary:
        profile = resolve_profile(tx, user_id)
        activity = get_activity(tx, activity_id, for_update=True)
        participant = join_activity(
            tx,
            activity,
            profile,
            message=message,
            invite_code=invite_code,
            requires_approval=requires_approval,
        )
        return to_summary(participant)

    summary, event_ids = run_in_transaction(db, work)
    return ParticipationResult(summary, event_ids)


def cancel(db: Session, activity_id: int, participant_id: int, user_id: str) -> ParticipationResult:
    """참여 취소 (본인 또는 호스트). 이미 취소된 기록이면 이벤트 없이 그대로 반환."""

    def work(tx: Session) -> ParticipantSummary:
        activity = get_activity(tx, activity_id, for_update=True)
        participant = get_participant(tx, activity_id, participant_id)
        return to_summary(cancel_participation(tx, activity, participant, user_id))

    summary, event_ids = run_in_transaction(db, work)
    return ParticipationResult(summary, event_ids)


def moderate(
    db: Session,
    activity_id: int,
    participant_id: int,
    user_id: str,
    action: str,
    message: Optional[str] = None,
) -> ParticipationResult:
    """호스트 승인/거절."""

    def work(tx: Session) -> ParticipantSummary:
        activity = get_activity(tx, activity_id, for_update=True)
        participant = get_participant(tx, activity_id, participant_id)
        return to_summary(moderate_participant(tx, activity, participant, user_id, action, message))

    summary, event_ids = run_in_transaction(db, work)
    return ParticipationResult(summary, event_ids)


def list_roster(db: Session, activity_id: int, user_id: str) -> List[ParticipantSummary]:
    """호스트 전용 명단 (읽기 전용이라 잠금 없음)."""
    try:
        activity = get_activity(db, activity_id)
        return [to_summary(p) for p in list_participants(db, activity, user_id)]
    finally:
        db.rollback()
