"""Consultation lifecycle and reschedule negotiation rules.

The backend owns the lifecycle. This module mirrors its transition table so
the bot only offers valid actions and can describe their outcome:

    PENDING --confirm--> CONFIRMED
    PENDING --reschedule--> RESCHEDULE_REQUEST --accept--> CONFIRMED
                                               --reject--> CANCELLED
    PENDING / RESCHEDULE_REQUEST / CONFIRMED --cancel--> CANCELLED
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from enum import StrEnum
from typing import Iterable

from franchise_bot.api.models import (
    AccountRole,
    Consultation,
    ConsultationStatus,
    RescheduleRequest,
)


class ConsultationAction(StrEnum):
    """Triggers of the consultation lifecycle."""

    CONFIRM = "CONFIRM"
    RESCHEDULE = "RESCHEDULE"
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    CANCEL = "CANCEL"


class InvalidTransitionError(Exception):
    """Action is not allowed from the current status."""

    def __init__(
        self,
        status: ConsultationStatus,
        action: ConsultationAction,
    ) -> None:
        super().__init__(f"Cannot {action.value} a consultation in {status.value}")
        self.status = status
        self.action = action


class DuplicateConsultationError(Exception):
    """User already has a live consultation for the brand."""

    def __init__(self, existing: Consultation) -> None:
        super().__init__(
            f"Consultation {existing.id} for brand {existing.brand_id} "
            f"is still {existing.status.value}",
        )
        self.existing = existing


TRANSITIONS: dict[
    tuple[ConsultationStatus, ConsultationAction],
    ConsultationStatus,
] = {
    (
        ConsultationStatus.PENDING,
        ConsultationAction.CONFIRM,
    ): ConsultationStatus.CONFIRMED,
    (
        ConsultationStatus.PENDING,
        ConsultationAction.RESCHEDULE,
    ): ConsultationStatus.RESCHEDULE_REQUEST,
    (
        ConsultationStatus.RESCHEDULE_REQUEST,
        ConsultationAction.ACCEPT,
    ): ConsultationStatus.CONFIRMED,
    (
        ConsultationStatus.RESCHEDULE_REQUEST,
        ConsultationAction.REJECT,
    ): ConsultationStatus.CANCELLED,
    (
        ConsultationStatus.PENDING,
        ConsultationAction.CANCEL,
    ): ConsultationStatus.CANCELLED,
    (
        ConsultationStatus.RESCHEDULE_REQUEST,
        ConsultationAction.CANCEL,
    ): ConsultationStatus.CANCELLED,
    (
        ConsultationStatus.CONFIRMED,
        ConsultationAction.CANCEL,
    ): ConsultationStatus.CANCELLED,
}

ROLE_ACTIONS: dict[AccountRole, tuple[ConsultationAction, ...]] = {
    AccountRole.MANAGER: (
        ConsultationAction.CONFIRM,
        ConsultationAction.RESCHEDULE,
        ConsultationAction.CANCEL,
    ),
    AccountRole.USER: (
        ConsultationAction.ACCEPT,
        ConsultationAction.REJECT,
        ConsultationAction.CANCEL,
    ),
}

STATUS_LABELS: dict[ConsultationStatus, str] = {
    ConsultationStatus.PENDING: "신청 중",
    ConsultationStatus.RESCHEDULE_REQUEST: "일정 조정 중",
    ConsultationStatus.CONFIRMED: "확정",
    ConsultationStatus.CANCELLED: "취소",
}

STATUS_ICONS: dict[ConsultationStatus, str] = {
    ConsultationStatus.PENDING: "🟡",
    ConsultationStatus.RESCHEDULE_REQUEST: "🟠",
    ConsultationStatus.CONFIRMED: "🟢",
    ConsultationStatus.CANCELLED: "⚪",
}


def can_transition(status: ConsultationStatus, action: ConsultationAction) -> bool:
    """Check whether the action is valid from the status."""
    return (status, action) in TRANSITIONS


def next_status(
    status: ConsultationStatus,
    action: ConsultationAction,
) -> ConsultationStatus:
    """
    Return the status the action leads to.

    Raises:
        InvalidTransitionError: If the action is not valid from the status.
    """
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise InvalidTransitionError(status, action) from None


def available_actions(
    status: ConsultationStatus,
    role: AccountRole,
) -> list[ConsultationAction]:
    """Actions the given side may trigger from the status, in display order."""
    return [action for action in ROLE_ACTIONS[role] if can_transition(status, action)]


def is_terminal(status: ConsultationStatus) -> bool:
    """CANCELLED accepts no further actions."""
    return not any(s == status for s, _ in TRANSITIONS)


def is_active(status: ConsultationStatus) -> bool:
    """Consultation still counts against the one-per-brand rule."""
    return status != ConsultationStatus.CANCELLED


def apply_transition(
    consultation: Consultation,
    action: ConsultationAction,
    *,
    proposal: RescheduleRequest | None = None,
    now: datetime | None = None,
) -> Consultation:
    """
    Return a copy of the consultation with the action applied.

    Args:
        consultation: Current consultation.
        action: Trigger to apply.
        proposal: Adjusted slot, required for RESCHEDULE.
        now: Confirmation time, defaults to the current time.

    Returns:
        Updated copy; the original is left untouched.

    Raises:
        InvalidTransitionError: If the action is not valid from the status.
        ValueError: If RESCHEDULE is applied without a proposal, or ACCEPT
            to a consultation without a proposed date and time.
    """
    status = next_status(consultation.status, action)
    changes: dict[str, object] = {"status": status}

    if action == ConsultationAction.RESCHEDULE:
        if proposal is None:
            raise ValueError("Reschedule requires a proposed date and time")
        changes.update(
            adjusted_date=proposal.adjusted_date,
            adjusted_time=proposal.adjusted_time,
            adjustment_reason=proposal.adjustment_reason,
            manager_note=proposal.manager_note,
        )
    elif action == ConsultationAction.ACCEPT:
        if consultation.adjusted_date is None or consultation.adjusted_time is None:
            raise ValueError("Accept requires a proposed date and time")
        # The proposed slot becomes the effective schedule
        changes.update(
            preferred_date=consultation.adjusted_date,
            preferred_time=consultation.adjusted_time,
        )

    if status == ConsultationStatus.CONFIRMED:
        changes["confirmed_at"] = now or datetime.now()

    return consultation.model_copy(update=changes)


def find_active_consultation(
    consultations: Iterable[Consultation],
    brand_id: int,
) -> Consultation | None:
    """Return the live consultation for the brand, if any."""
    for consultation in consultations:
        if consultation.brand_id == brand_id and is_active(consultation.status):
            return consultation
    return None


def ensure_no_active_consultation(
    consultations: Iterable[Consultation],
    brand_id: int,
) -> None:
    """
    Reject a second live consultation for the same brand.

    Raises:
        DuplicateConsultationError: If a non-cancelled one exists.
    """
    existing = find_active_consultation(consultations, brand_id)
    if existing is not None:
        raise DuplicateConsultationError(existing)


def count_by_status(
    consultations: Iterable[Consultation],
) -> dict[ConsultationStatus, int]:
    """Number of consultations per status, zero for absent ones."""
    counter = Counter(consultation.status for consultation in consultations)
    return {status: counter.get(status, 0) for status in ConsultationStatus}


CONSULTATION_TABS: dict[str, tuple[ConsultationStatus, ...]] = {
    "active": (
        ConsultationStatus.PENDING,
        ConsultationStatus.RESCHEDULE_REQUEST,
    ),
    "done": (ConsultationStatus.CONFIRMED,),
    "cancelled": (ConsultationStatus.CANCELLED,),
}

TAB_LABELS: dict[str, str] = {
    "active": "진행 중",
    "done": "완료",
    "cancelled": "취소",
}


def filter_by_tab(
    consultations: Iterable[Consultation],
    tab: str,
) -> list[Consultation]:
    """
    Consultations shown on a history tab.

    Raises:
        KeyError: If the tab is unknown.
    """
    statuses = CONSULTATION_TABS[tab]
    return [c for c in consultations if c.status in statuses]
