# 정원 게이트: 새 참여 신청의 초기 상태(confirmed / waitlisted / pending) 결정

from dataclasses import dataclass
from typing import Callable, Optional

from app.models.activity import Activity, ActivityStatus
from app.models.participant import ParticipantStatus
from app.services.errors import BadRequestError


@dataclass(frozen=True)
class JoinDecision:
    status: str
    waitlist_position: Optional[int] = None


def requires_host_approval(activity: Activity) -> bool:
    """기본 정책: 비공개 활동은 호스트 승인 필요. 멤버십 등급별 정책은 다른 predicate로 교체."""
    return not activity.is_public


def decide_join_status(
    activity: Activity,
    user_id: str,
    confirmed_count: int,
    waitlisted_count: int,
    requires_approval: Callable[[Activity], bool] = requires_host_approval,
) -> JoinDecision:
    """
    현재 인원 기준 초기 상태 결정. 검증 실패 시 BadRequestError (쓰기 전에 호출해야 함).

    - 호스트 본인 → 거부
    - published 아님 → 거부
    - 승인 필요(비공개) → pending
    - 확정 인원이 정원 이상 → waitlisted (대기 순번 = 현재 대기 인원 + 1)
    - 그 외 → confirmed
    """
    if activity.host_id == user_id:
        raise BadRequestError("Hosts cannot join their own activities")

    if activity.status != ActivityStatus.PUBLISHED.value:
        raise BadRequestError("Activity is not accepting new participants")

    if requires_approval(activity):
        return JoinDecision(ParticipantStatus.PENDING.value)

    if confirmed_count >= activity.max_participants:
        return JoinDecision(ParticipantStatus.WAITLISTED.value, waitlisted_count + 1)

    return JoinDecision(ParticipantStatus.CONFIRMED.value)


def check_approval_capacity(activity: Activity, confirmed_count: int) -> None:
    """승인 시 재검사: 정원만 확인. 초과면 BadRequestError (참여자는 pending 유지)."""
    if confirmed_count >= activity.max_participants:
        raise BadRequestError("Activity is already at capacity")
