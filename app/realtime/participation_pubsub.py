# SSE + Redis Pub/Sub: 참여 알림 발행 (Notification Emitter)
# 발행은 best-effort: 실패해도 참여 상태 변경은 이미 commit된 상태로 유지
# Redis Pub/Sub: 멀티 인스턴스 환경에서도 구독자가 어느 워커에 붙든 이벤트 수신

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

import redis.asyncio as redis

logger = logging.getLogger("activities.notifications")

# Docker 환경에서는 localhost가 아니라 서비스명(redis)을 사용해야 함
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CHANNEL_PREFIX = "activity:"
CHANNEL_SUFFIX = ":participants"
HEARTBEAT_INTERVAL = 15.0

# 모듈 단일 클라이언트 재사용 (매 요청마다 새 연결 생성 방지)
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


def _channel(activity_id: int) -> str:
    return f"{CHANNEL_PREFIX}{activity_id}{CHANNEL_SUFFIX}"


async def publish_participation_event(payload: Dict[str, Any]) -> bool:
    """
    참여 이벤트 발행. payload에는 type, event_id, activity_id, participant_id, user_id, metadata 포함.

    반환: 발행 성공 여부. 예외는 절대 전파하지 않음 (로그만 남김).
    """
    try:
        await redis_client.publish(_channel(payload["activity_id"]), json.dumps(payload, ensure_ascii=False))
    except Exception:
        logger.warning(
            f"[{payload.get('type')}] publish failed: activity={payload.get('activity_id')} "
            f"participant={payload.get('participant_id')} user={payload.get('user_id')}",
            exc_info=True,
        )
        return False
    logger.info(
        f"[{payload.get('type')}] activity={payload.get('activity_id')} "
        f"participant={payload.get('participant_id')} user={payload.get('user_id')} "
        f"metadata={json.dumps(payload.get('metadata') or {})}"
    )
    return True


async def stream_participation_events(activity_id: int) -> AsyncGenerator[str, None]:
    """
    GET /activities/{id}/participants/stream 용.
    참여 채널 구독 → SSE로 전달. event 이름은 payload의 type (activity.joined 등).
    SSE는 long-lived connection이므로 예외·연결 해제 처리 필수.
    """
    channel = _channel(activity_id)
    pubsub = redis_client.pubsub()
    try:
        await pubsub.subscribe(channel)
        last_heartbeat = datetime.now(timezone.utc).timestamp()

        while True:
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            now = datetime.now(timezone.utc).timestamp()
            if now - last_heartbeat >= HEARTBEAT_INTERVAL:
                yield ": ping\n\n"
                last_heartbeat = now
            if message and message.get("type") == "message":
                data = message.get("data") or ""
                try:
                    event_name = json.loads(data).get("type") or "participation_updated"
                except (ValueError, AttributeError):
                    event_name = "participation_updated"
                yield f"event: {event_name}\ndata: {data}\n\n"
    except asyncio.CancelledError:
        pass
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.close()
