# 활동 참여 API
from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.realtime.participation_pubsub import stream_participation_events
from app.schemas.participation import JoinBody, ModerateBody, ParticipationOut, RosterOut
from app.services import outbox, participation_engine
from app.services.errors import ParticipationError

router = APIRouter(prefix="/activities/{activity_id}/participants", tags=["Participants"])


def get_current_user_id(x_user_id: str = Header(..., alias="X-User-Id", min_length=1, max_length=64)) -> str:
    """상위 인증 계층(게이트웨이)이 검증 후 넣어 주는 외부 사용자 id."""
    return x_user_id


@router.post("", response_model=ParticipationOut)
async def post_join(
    activity_id: int,
    body: JoinBody,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ParticipationOut:
    """활동 참여 신청. 공개 활동은 confirmed 또는 waitlisted, 비공개 활동은 pending."""
    try:
        result = participation_engine.join(
            db, activity_id, user_id, message=body.message, invite_code=body.invite_code
        )
    except ParticipationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to join activity")

    # commit 이후에만 알림 발행 (트랜잭션 재시도로 인한 중복 발행 방지). 발행 오류는 응답에 영향 없음
    await outbox.dispatch_events(db, result.event_ids)
    return ParticipationOut(participation=result.participation)


@router.delete("/{participant_id}", response_model=ParticipationOut)
async def delete_participation(
    activity_id: int,
    participant_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ParticipationOut:
    """참여 취소 (본인 또는 호스트). 확정 자리가 비면 대기 1순위 자동 승격."""
    try:
        result = participation_engine.cancel(db, activity_id, participant_id, user_id)
    except ParticipationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to cancel participation")

    await outbox.dispatch_events(db, result.event_ids)
    return ParticipationOut(participation=result.participation)


@router.patch("/{participant_id}", response_model=ParticipationOut)
async def patch_participation(
    activity_id: int,
    participant_id: int,
    body: ModerateBody,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ParticipationOut:
    """호스트 승인/거절. 정원이 찬 상태에서 승인하면 400."""
    try:
        result = participation_engine.moderate(
            db, activity_id, participant_id, user_id, body.action, message=body.message
        )
    except ParticipationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to moderate participant")

    await outbox.dispatch_events(db, result.event_ids)
    return ParticipationOut(participation=result.participation)


@router.get("", response_model=RosterOut)
def get_roster(
    activity_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> RosterOut:
    """호스트 전용 참여자 명단 (취소 포함). confirmed → pending → waitlisted → cancelled 순."""
    try:
        participants = participation_engine.list_roster(db, activity_id, user_id)
    except ParticipationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return RosterOut(participants=participants)


@router.get("/stream")
async def get_participation_stream(activity_id: int):
    """SSE: 해당 활동의 참여 이벤트(activity.joined, activity.promoted 등) 실시간 스트림."""
    return StreamingResponse(
        stream_participation_events(activity_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
