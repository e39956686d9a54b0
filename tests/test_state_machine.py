from datetime import datetime, timedelta, timezone

import pytest

from gigsign.core.exceptions import InvalidPayloadError, InvalidTransitionError
from gigsign.domain.audit import AuditEvent
from gigsign.domain.contract import ContractStatus
from gigsign.domain.mixins import as_utc
from gigsign.services.state_machine import (
    MIN_SIGNATURE_LENGTH,
    Action,
    is_expired,
    plan,
    require_reviewer,
    validate_signature,
)

S = ContractStatus


@pytest.mark.parametrize(
    "action, source, target, event",
    [
        (Action.SEND_TO_REVIEWER, S.DRAFT, S.SENT_TO_REVIEWER, AuditEvent.SENT_TO_REVIEWER),
        (Action.SEND_TO_SIGNER, S.DRAFT, S.SENT, AuditEvent.SENT),
        (Action.SEND_TO_SIGNER, S.SENT, S.SENT, AuditEvent.RESENT),
        (Action.VIEW_AS_REVIEWER, S.SENT_TO_REVIEWER, S.REVIEWED, AuditEvent.REVIEWED),
        (Action.APPROVE_AS_REVIEWER, S.SENT_TO_REVIEWER, S.SENT, AuditEvent.APPROVED),
        (Action.APPROVE_AS_REVIEWER, S.REVIEWED, S.SENT, AuditEvent.APPROVED),
        (Action.VIEW_AS_SIGNER, S.SENT, S.VIEWED, AuditEvent.VIEWED),
        (Action.SIGN, S.SENT, S.SIGNED, AuditEvent.SIGNED),
        (Action.SIGN, S.VIEWED, S.SIGNED, AuditEvent.SIGNED),
        (Action.CANCEL, S.VIEWED, S.CANCELLED, AuditEvent.CANCELLED),
        (Action.EXPIRE, S.SENT, S.EXPIRED, AuditEvent.EXPIRED),
    ],
)
def test_allowed_transitions(action, source, target, event):
    transition = plan(action, source)
    assert transition.to_status == target
    assert transition.event == event
    assert not transition.is_noop


@pytest.mark.parametrize(
    "action, source",
    [
        (Action.VIEW_AS_REVIEWER, S.REVIEWED),
        (Action.VIEW_AS_SIGNER, S.VIEWED),
    ],
)
def test_repeated_views_are_noops(action, source):
    transition = plan(action, source)
    assert transition.is_noop
    assert transition.to_status == source


@pytest.mark.parametrize(
    "action, source",
    [
        (Action.SIGN, S.DRAFT),
        (Action.SIGN, S.SIGNED),
        (Action.SIGN, S.SENT_TO_REVIEWER),
        (Action.APPROVE_AS_REVIEWER, S.SENT),
        (Action.VIEW_AS_SIGNER, S.SIGNED),
        (Action.CANCEL, S.SIGNED),
        (Action.CANCEL, S.CANCELLED),
        (Action.SEND_TO_SIGNER, S.SIGNED),
        (Action.SEND_TO_REVIEWER, S.VIEWED),
        (Action.EXPIRE, S.DRAFT),
        (Action.EXPIRE, S.EXPIRED),
    ],
)
def test_rejected_transitions(action, source):
    with pytest.raises(InvalidTransitionError):
        plan(action, source)


def test_reviewer_view_never_moves_status_backwards():
    for status in (S.SENT, S.VIEWED, S.SIGNED):
        with pytest.raises(InvalidTransitionError):
            plan(Action.VIEW_AS_REVIEWER, status)


def test_expiry_is_strictly_after_the_instant():
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert is_expired(now - timedelta(seconds=1), now)
    assert not is_expired(now, now)
    assert not is_expired(now + timedelta(seconds=1), now)
    assert not is_expired(None, now)


def test_expiry_accepts_naive_values_as_utc():
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert is_expired(datetime(2026, 10, 19, 11, 59, 59), now)


def test_as_utc_converts_offset_values_to_utc():
    stockholm = timezone(timedelta(hours=2))
    converted = as_utc(datetime(2026, 10, 19, 14, 0, tzinfo=stockholm))
    assert converted.tzinfo is timezone.utc
    assert converted == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert converted.isoformat() == "2026-10-19T12:00:00+00:00"
    assert as_utc(None) is None


def test_signature_length_boundary():
    validate_signature("Astrid Berg", "x" * MIN_SIGNATURE_LENGTH)
    with pytest.raises(InvalidPayloadError) as exc:
        validate_signature("Astrid Berg", "x" * (MIN_SIGNATURE_LENGTH - 1))
    assert exc.value.field == "signature_image"


def test_signature_requires_signer_name():
    with pytest.raises(InvalidPayloadError) as exc:
        validate_signature("   ", "x" * 200)
    assert exc.value.field == "signer_name"


def test_reviewer_guard_requires_email():
    with pytest.raises(InvalidPayloadError) as exc:
        require_reviewer("Lars", None)
    assert exc.value.field == "reviewer_email"
