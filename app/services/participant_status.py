# Participant status state machine: allowed transitions only.
# pending    -> confirmed, cancelled
# waitlisted -> confirmed, cancelled
# confirmed  -> cancelled
# cancelled  -> (none)
#
# Rejoining reuses a cancelled row, but that re-opens the record as a new
# participation and does not go through this table.

from typing import Optional

from app.models.participant import ParticipantStatus

# Allowed target statuses from each current status.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    ParticipantStatus.PENDING.value: {ParticipantStatus.CONFIRMED.value, ParticipantStatus.CANCELLED.value},
    ParticipantStatus.WAITLISTED.value: {ParticipantStatus.CONFIRMED.value, ParticipantStatus.CANCELLED.value},
    ParticipantStatus.CONFIRMED.value: {ParticipantStatus.CANCELLED.value},
    ParticipantStatus.CANCELLED.value: set(),
}

# Roster ordering: confirmed < pending < waitlisted < cancelled
STATUS_PRIORITY: dict[str, int] = {
    ParticipantStatus.CONFIRMED.value: 0,
    ParticipantStatus.PENDING.value: 1,
    ParticipantStatus.WAITLISTED.value: 2,
    ParticipantStatus.CANCELLED.value: 3,
}


def check_status_transition(current: str, target: str) -> Optional[str]:
    """참여 상태 전이 검사. 허용되면 None, 아니면 참여자에게 돌려줄 오류 메시지."""
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if target in allowed:
        return None
    if not allowed:
        return f"A {current} participation cannot be changed to {target}"
    return f"A {current} participation can only become {' or '.join(sorted(allowed))}, not {target}"


def is_terminal_status(status: str) -> bool:
    """더 이상 바뀔 수 없는 상태 (취소). 재참여는 전이표를 거치지 않음."""
    return not ALLOWED_TRANSITIONS.get(status)
