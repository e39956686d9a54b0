"""Contract lifecycle state machine.

Pure functions only: no session, no I/O. Orchestrators ask :func:`plan` what
an action would do from the observed status, then apply the result with a
conditional write keyed on that same status.

    draft ──► sent_to_reviewer ──► reviewed ──► sent ──► viewed ──► signed
      │                                          ▲
      └──────────────────────────────────────────┘
    any non-terminal ──► cancelled        token past expiry ──► expired
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gigsign.core.exceptions import InvalidPayloadError, InvalidTransitionError
from gigsign.domain.audit import AuditEvent
from gigsign.domain.contract import ContractStatus
from gigsign.domain.mixins import as_utc

MIN_SIGNATURE_LENGTH = 100

TERMINAL_STATUSES = frozenset({ContractStatus.SIGNED, ContractStatus.CANCELLED})


class Action(str, enum.Enum):
    SEND_TO_REVIEWER = "send_to_reviewer"
    SEND_TO_SIGNER = "send_to_signer"
    VIEW_AS_REVIEWER = "view_as_reviewer"
    APPROVE_AS_REVIEWER = "approve_as_reviewer"
    VIEW_AS_SIGNER = "view_as_signer"
    SIGN = "sign"
    CANCEL = "cancel"
    EXPIRE = "expire"


_S = ContractStatus

# action -> (allowed source statuses, target status, audit event)
_RULES: dict[Action, tuple[frozenset[ContractStatus], ContractStatus, AuditEvent]] = {
    Action.SEND_TO_REVIEWER: (frozenset({_S.DRAFT, _S.SENT}), _S.SENT_TO_REVIEWER, AuditEvent.SENT_TO_REVIEWER),
    Action.SEND_TO_SIGNER: (frozenset({_S.DRAFT, _S.SENT}), _S.SENT, AuditEvent.SENT),
    Action.VIEW_AS_REVIEWER: (frozenset({_S.SENT_TO_REVIEWER, _S.REVIEWED}), _S.REVIEWED, AuditEvent.REVIEWED),
    Action.APPROVE_AS_REVIEWER: (frozenset({_S.SENT_TO_REVIEWER, _S.REVIEWED}), _S.SENT, AuditEvent.APPROVED),
    Action.VIEW_AS_SIGNER: (frozenset({_S.SENT, _S.VIEWED}), _S.VIEWED, AuditEvent.VIEWED),
    Action.SIGN: (frozenset({_S.SENT, _S.VIEWED}), _S.SIGNED, AuditEvent.SIGNED),
    Action.CANCEL: (frozenset(set(_S) - TERMINAL_STATUSES), _S.CANCELLED, AuditEvent.CANCELLED),
    Action.EXPIRE: (
        frozenset({_S.SENT_TO_REVIEWER, _S.REVIEWED, _S.SENT, _S.VIEWED}),
        _S.EXPIRED,
        AuditEvent.EXPIRED,
    ),
}

# Views are idempotent: repeating one from its target status changes nothing.
_IDEMPOTENT = frozenset({Action.VIEW_AS_REVIEWER, Action.VIEW_AS_SIGNER})


@dataclass(frozen=True)
class Transition:
    action: Action
    from_status: ContractStatus
    to_status: ContractStatus
    event: Optional[AuditEvent]

    @property
    def is_noop(self) -> bool:
        return self.event is None


def allowed_from(action: Action) -> frozenset[ContractStatus]:
    return _RULES[action][0]


def plan(action: Action, status: str | ContractStatus) -> Transition:
    """Return the transition ``action`` performs from ``status``.

    Raises :class:`InvalidTransitionError` when the action is not allowed.
    """
    current = ContractStatus(status)
    sources, target, event = _RULES[action]
    if current not in sources:
        raise InvalidTransitionError(action.value, current.value)

    if action in _IDEMPOTENT and current == target:
        return Transition(action, current, current, None)
    if action == Action.SEND_TO_SIGNER and current == ContractStatus.SENT:
        event = AuditEvent.RESENT
    return Transition(action, current, target, event)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """A token is expired strictly after its expiry instant."""
    if expires_at is None:
        return False
    return as_utc(expires_at) < now


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def require_reviewer(reviewer_name: Optional[str], reviewer_email: Optional[str]) -> None:
    if _blank(reviewer_email):
        raise InvalidPayloadError("Reviewer email is required", field="reviewer_email")
    if _blank(reviewer_name):
        raise InvalidPayloadError("Reviewer name is required", field="reviewer_name")


def require_signer(signer_email: Optional[str]) -> None:
    if _blank(signer_email):
        raise InvalidPayloadError("Signer email is required", field="signer_email")


def validate_signature(signer_name: Optional[str], signature_image: Optional[str]) -> None:
    if _blank(signer_name):
        raise InvalidPayloadError("Signer name is required", field="signer_name")
    if not signature_image:
        raise InvalidPayloadError("Signature image is required", field="signature_image")
    if len(signature_image) < MIN_SIGNATURE_LENGTH:
        raise InvalidPayloadError(
            f"Signature image must be at least {MIN_SIGNATURE_LENGTH} characters",
            field="signature_image",
        )
