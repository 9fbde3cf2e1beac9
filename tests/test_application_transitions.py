import pytest
from fastapi import HTTPException

from schoolconnect.schemas.schemas import ApplicationStatus as S
from schoolconnect.services.application_service import can_transition, ensure_transition, group_by_status
from schoolconnect.services.notification_service import should_notify_status_change


@pytest.mark.parametrize("current,new", [
    (S.pending, S.reviewed),
    (S.pending, S.accepted),
    (S.pending, S.rejected),
    (S.reviewed, S.accepted),
    (S.reviewed, S.rejected),
    (S.accepted, S.accepted),
])
def test_allowed(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize("current,new", [
    (S.reviewed, S.pending),
    (S.accepted, S.rejected),
    (S.accepted, S.pending),
    (S.rejected, S.reviewed),
])
def test_forbidden(current, new):
    assert not can_transition(current, new)
    with pytest.raises(HTTPException) as exc:
        ensure_transition(current.value, new)
    assert exc.value.status_code == 400


def test_notify_only_on_real_change_away_from_pending():
    assert should_notify_status_change("pending", "accepted")
    assert should_notify_status_change("reviewed", "rejected")
    assert should_notify_status_change("pending", "reviewed")
    assert not should_notify_status_change("accepted", "accepted")
    assert not should_notify_status_change("reviewed", "pending")


def test_group_by_status_has_every_bucket():
    grouped = group_by_status([])
    assert set(grouped) == {"pending", "reviewed", "accepted", "rejected"}
