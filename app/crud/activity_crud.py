# 활동 조회 CRUD (참여 엔진 입장에서는 외부 협력자: 읽기 + 행 잠금만)

from sqlalchemy.orm import Query, Session

from app.models.activity import Activity
from app.services.errors import NotFoundError


def activity_query(db: Session, activity_id: int, for_update: bool = False) -> Query:
    q = db.query(Activity).filter(Activity.id == activity_id)
    if for_update:
        q = q.with_for_update()
    return q


def get_activity(db: Session, activity_id: int, for_update: bool = False) -> Activity:
    """
    id로 활동 조회. 없으면 NotFoundError.

    for_update=True 이면 SELECT ... FOR UPDATE 로 활동 행을 잠가서
    같은 활동에 대한 정원 확인 + 쓰기를 트랜잭션 간에 직렬화한다.
    """
    activity = activity_query(db, activity_id, for_update=for_update).first()
    if activity is None:
        raise NotFoundError(f"Activity with ID {activity_id} not found")
    return activity
