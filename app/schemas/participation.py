# 참여 API 요청/응답 스키마

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ParticipantStatusLiteral = Literal["pending", "confirmed", "waitlisted", "cancelled"]


class JoinBody(BaseModel):
    """참여 신청. message는 비공개 활동 승인 요청 메시지, invite_code는 그대로 저장만 함."""

    message: Optional[str] = Field(default=None, max_length=500)
    invite_code: Optional[str] = Field(default=None, max_length=64)


class ModerateBody(BaseModel):
    """호스트 승인/거절. reject일 때 message는 거절 사유로 저장."""

    action: Literal["approve", "reject"]
    message: Optional[str] = Field(default=None, max_length=500)


class ParticipantSummary(BaseModel):
    """참여 기록 응답. user_id는 외부 인증 id."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: int
    user_id: str
    full_name: Optional[str] = None
    status: ParticipantStatusLiteral
    waitlist_position: Optional[int] = None
    approval_message: Optional[str] = None
    joined_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class ParticipationOut(BaseModel):
    """join / cancel / moderate 응답."""

    participation: ParticipantSummary


class RosterOut(BaseModel):
    """명단 조회 응답."""

    participants: List[ParticipantSummary]
