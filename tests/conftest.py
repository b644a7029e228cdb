"""
Pytest configuration and fixtures

Every test gets its own in-memory SQLite database built from the model
metadata, so nothing leaks between tests. Redis publishing is replaced by
an in-memory recorder.
"""
from typing import Callable, List

import pytest
from sqlalchemy import create_engine, func
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.activity import Activity, ActivityStatus
from app.models.base import Base
from app.models.participant import ActivityParticipant, ParticipantStatus
from app.models import participation_event  # noqa: F401 — 테이블 메타데이터 등록용
from app.models.user import UserProfile
from app.realtime import participation_pubsub


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session: Session = session_factory()
    yield session
    session.close()


@pytest.fixture
def published(monkeypatch) -> List[dict]:
    """Records every payload handed to the notification emitter."""
    sent: List[dict] = []

    async def fake_publish(payload: dict) -> bool:
        sent.append(payload)
        return True

    monkeypatch.setattr(participation_pubsub, "publish_participation_event", fake_publish)
    return sent


@pytest.fixture
def make_profile(db) -> Callable[..., UserProfile]:
    def _make(user_id: str, full_name: str | None = None) -> UserProfile:
        profile = UserProfile(user_id=user_id, full_name=full_name or user_id.title())
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_activity(db) -> Callable[..., Activity]:
    def _make(
        host_id: str = "host-1",
        max_participants: int = 1,
        is_public: bool = True,
        status: str = ActivityStatus.PUBLISHED.value,
        title: str = "Sunday run",
    ) -> Activity:
        activity = Activity(
            host_id=host_id,
            title=title,
            max_participants=max_participants,
            is_public=is_public,
            status=status,
        )
        db.add(activity)
        db.commit()
        db.refresh(activity)
        return activity

    return _make


@pytest.fixture
def check_invariants(db) -> Callable[[Activity], None]:
    """Asserts capacity, waitlist contiguity and one-active-row-per-profile for an activity."""

    def _check(activity: Activity) -> None:
        rows = db.query(ActivityParticipant).filter(ActivityParticipant.activity_id == activity.id).all()

        confirmed = [p for p in rows if p.status == ParticipantStatus.CONFIRMED.value]
        assert len(confirmed) <= activity.max_participants

        waitlisted = [p for p in rows if p.status == ParticipantStatus.WAITLISTED.value]
        assert sorted(p.waitlist_position for p in waitlisted) == list(range(1, len(waitlisted) + 1))
        for p in rows:
            if p.status != ParticipantStatus.WAITLISTED.value:
                assert p.waitlist_position is None

        active_per_profile = (
            db.query(ActivityParticipant.profile_id, func.count(ActivityParticipant.id))
            .filter(
                ActivityParticipant.activity_id == activity.id,
                ActivityParticipant.status != ParticipantStatus.CANCELLED.value,
            )
            .group_by(ActivityParticipant.profile_id)
            .all()
        )
        assert all(count == 1 for _, count in active_per_profile)

        host_profile = db.query(UserProfile).filter(UserProfile.user_id == activity.host_id).first()
        if host_profile is not None:
            assert all(p.profile_id != host_profile.id for p in rows)

    return _check
