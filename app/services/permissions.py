# 참여 관련 권한 판정: "누가 이 참여 기록에 대해 행동할 수 있는가"

from enum import Enum as PyEnum
from typing import Optional

from app.models.activity import Activity
from app.services.errors import ForbiddenError


class ActorRole(str, PyEnum):
    SELF = "self"
    HOST = "host"
    NONE = "none"


def resolve_actor_role(acting_user_id: str, participant_user_id: Optional[str], activity: Activity) -> ActorRole:
    """요청자가 참여자 본인인지, 활동 호스트인지, 둘 다 아닌지."""
    if participant_user_id is not None and acting_user_id == participant_user_id:
        return ActorRole.SELF
    if acting_user_id == activity.host_id:
        return ActorRole.HOST
    return ActorRole.NONE


def require_host(acting_user_id: str, activity: Activity, message: str) -> None:
    if resolve_actor_role(acting_user_id, None, activity) is not ActorRole.HOST:
        raise ForbiddenError(message)
