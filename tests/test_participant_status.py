from app.models.activity import Activity
from app.services.participant_status import check_status_transition, is_terminal_status
from app.services.permissions import ActorRole, resolve_actor_role


def test_allowed_transitions():
    assert check_status_transition("pending", "confirmed") is None
    assert check_status_transition("pending", "cancelled") is None
    assert check_status_transition("waitlisted", "confirmed") is None
    assert check_status_transition("waitlisted", "cancelled") is None
    assert check_status_transition("confirmed", "cancelled") is None


def test_cancelled_is_terminal():
    assert is_terminal_status("cancelled")
    assert not is_terminal_status("pending")
    assert check_status_transition("cancelled", "confirmed") == "A cancelled participation cannot be changed to confirmed"


def test_confirmed_cannot_go_back_to_waitlist():
    message = check_status_transition("confirmed", "waitlisted")
    assert message == "A confirmed participation can only become cancelled, not waitlisted"


def test_pending_lists_every_allowed_target():
    message = check_status_transition("pending", "waitlisted")
    assert message == "A pending participation can only become cancelled or confirmed, not waitlisted"


def test_resolve_actor_role():
    activity = Activity(host_id="host-1")
    assert resolve_actor_role("user-1", "user-1", activity) is ActorRole.SELF
    assert resolve_actor_role("host-1", "user-1", activity) is ActorRole.HOST
    assert resolve_actor_role("user-2", "user-1", activity) is ActorRole.NONE
    assert resolve_actor_role("user-2", None, activity) is ActorRole.NONE
