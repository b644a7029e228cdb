# 참여 취소: 본인 또는 호스트만 가능, 취소 후 대기열 보정 / 대기자 승격
from sqlalchemy.orm import Session

from app.crud.participant_crud import mark_cancelled
from app.models.activity import Activity
from app.models.participant import ActivityParticipant, ParticipantStatus
from app.services import outbox
from app.services.errors import ForbiddenError
from app.services.participant_status import is_terminal_status
from app.services.permissions import ActorRole, resolve_actor_role
from app.services.waitlist import promote_next_waitlisted, resequence_waitlist


def cancel_participation(
    db: Session,
    activity: Activity,
    participant: ActivityParticipant,
    acting_user_id: str,
) -> ActivityParticipant:
    """
    참여 취소.

    - 본인(SELF) 또는 호스트(HOST)가 아니면 ForbiddenError
    - 이미 cancelled면 그대로 반환 (쓰기·재정렬·알림 없음)
    - 이전 상태가 waitlisted → 대기열 재정렬
    - 이전 상태가 confirmed → 대기 1순위 승격 (승격 내부에서 재정렬)

    ⚠️ commit/rollback 하지 않음. activity 행은 호출자가 FOR UPDATE로 잠가 둘 것.
    """
    participant_user_id = participant.profile.user_id if participant.profile is not None else None
    role = resolve_actor_role(acting_user_id, participant_user_id, activity)
    if role is ActorRole.NONE:
        raise ForbiddenError("You do not have permission to cancel this participation")

    if is_terminal_status(participant.status):
        return participant

    previous = mark_cancelled(participant, actor=acting_user_id)

    if previous == ParticipantStatus.WAITLISTED.value:
        resequence_waitlist(db, activity.id)
    elif previous == ParticipantStatus.CONFIRMED.value:
        promote_next_waitlisted(db, activity)

    outbox.record_event(
        db,
        participant,
        participant_user_id or "",
        outbox.EVENT_CANCELLED,
        {"cancelledBy": role.value},
    )
    return participant
