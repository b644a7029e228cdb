# 프로필 조회: 외부 사용자 id → 내부 프로필

from sqlalchemy.orm import Session

from app.models.user import UserProfile
from app.services.errors import BadRequestError


def resolve_profile(db: Session, user_id: str) -> UserProfile:
    """외부 user_id로 프로필 조회. 프로필을 아직 만들지 않은 사용자는 참여 불가 (BadRequestError)."""
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile is None:
        raise BadRequestError("Complete your profile before joining activities")
    return profile
