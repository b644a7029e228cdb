# 호스트 승인/거절 (비공개 활동의 pending 참여자 처리)
from typing import Optional

from sqlalchemy.orm import Session

from app.crud.participant_crud import apply_transition, count_by_status, mark_cancelled, utcnow
from app.models.activity import Activity
from app.models.participant import ActivityParticipant, ParticipantStatus
from app.services import outbox
from app.services.capacity_gate import check_approval_capacity
from app.services.errors import BadRequestError
from app.services.participant_status import is_terminal_status
from app.services.permissions import require_host
from app.services.waitlist import promote_next_waitlisted, resequence_waitlist

ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"


def approve_participant(db: Session, activity: Activity, participant: ActivityParticipant, acting_user_id: str) -> ActivityParticipant:
    """
    pending → confirmed.

    - 이미 confirmed면 그대로 반환
    - pending이 아니면 BadRequestError
    - 정원 재확인 실패 시 BadRequestError, 상태는 pending 유지
    """
    require_host(acting_user_id, activity, "Only the host can approve or reject participants")

    if participant.status == ParticipantStatus.CONFIRMED.value:
        return participant
    if participant.status != ParticipantStatus.PENDING.value:
        raise BadRequestError("Only pending participants can be approved")

    confirmed_count = count_by_status(db, activity.id, ParticipantStatus.CONFIRMED.value)
    check_approval_capacity(activity, confirmed_count)

    now = utcnow()
    apply_transition(participant, ParticipantStatus.CONFIRMED.value, actor=acting_user_id)
    participant.waitlist_position = None
    participant.approved_at = now
    if participant.joined_at is None:
        participant.joined_at = now

    outbox.record_event(db, participant, participant.profile.user_id, outbox.EVENT_APPROVED)

    # 승인은 대기열을 직접 건드리지 않지만, 동시 변경이 있었어도 순번 불변식 유지
    resequence_waitlist(db, activity.id)
    return participant


def reject_participant(
    db: Session,
    activity: Activity,
    participant: ActivityParticipant,
    acting_user_id: str,
    message: Optional[str] = None,
) -> ActivityParticipant:
    """
    참여자 거절 → cancelled. 거절 사유는 approval_message에 저장.

    확정 참여자를 거절하면 빈 자리가 생기므로 대기 1순위를 한 명 승격.
    """
    require_host(acting_user_id, activity, "Only the host can approve or reject participants")

    if is_terminal_status(participant.status):
        return participant

    previous = mark_cancelled(participant, actor=acting_user_id)
    if message is not None:
        participant.approval_message = message

    outbox.record_event(
        db,
        participant,
        participant.profile.user_id,
        outbox.EVENT_REJECTED,
        {"message": message} if message else None,
    )

    if previous == ParticipantStatus.CONFIRMED.value:
        promote_next_waitlisted(db, activity)
    else:
        resequence_waitlist(db, activity.id)
    return participant


def moderate_participant(
    db: Session,
    activity: Activity,
    participant: ActivityParticipant,
    acting_user_id: str,
    action: str,
    message: Optional[str] = None,
) -> ActivityParticipant:
    if action == ACTION_APPROVE:
        return approve_participant(db, activity, participant, acting_user_id)
    if action == ACTION_REJECT:
        return reject_participant(db, activity, participant, acting_user_id, message)
    raise BadRequestError(f"Unknown moderation action: {action}")
