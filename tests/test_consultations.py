from datetime import date

import pytest

from franchise_bot.api.models import (
    AccountRole,
    ConsultationStatus,
    RescheduleRequest,
)
from franchise_bot.utils.consultations import (
    STATUS_LABELS,
    ConsultationAction,
    DuplicateConsultationError,
    InvalidTransitionError,
    apply_transition,
    available_actions,
    can_transition,
    count_by_status,
    ensure_no_active_consultation,
    filter_by_tab,
    is_active,
    is_terminal,
    next_status,
)

LIVE_STATUSES = [
    ConsultationStatus.PENDING,
    ConsultationStatus.RESCHEDULE_REQUEST,
    ConsultationStatus.CONFIRMED,
]


@pytest.mark.parametrize(
    ("status", "action", "expected"),
    [
        (
            ConsultationStatus.PENDING,
            ConsultationAction.CONFIRM,
            ConsultationStatus.CONFIRMED,
        ),
        (
            ConsultationStatus.PENDING,
            ConsultationAction.RESCHEDULE,
            ConsultationStatus.RESCHEDULE_REQUEST,
        ),
        (
            ConsultationStatus.RESCHEDULE_REQUEST,
            ConsultationAction.ACCEPT,
            ConsultationStatus.CONFIRMED,
        ),
        (
            ConsultationStatus.RESCHEDULE_REQUEST,
            ConsultationAction.REJECT,
            ConsultationStatus.CANCELLED,
        ),
    ],
)
def test_next_status(status, action, expected):
    assert next_status(status, action) == expected


@pytest.mark.parametrize("status", LIVE_STATUSES)
def test_cancel_reachable_from_every_live_status(status):
    assert next_status(status, ConsultationAction.CANCEL) == ConsultationStatus.CANCELLED


@pytest.mark.parametrize("action", list(ConsultationAction))
def test_nothing_leaves_cancelled(action):
    assert not can_transition(ConsultationStatus.CANCELLED, action)
    with pytest.raises(InvalidTransitionError) as exc_info:
        next_status(ConsultationStatus.CANCELLED, action)
    assert exc_info.value.status == ConsultationStatus.CANCELLED
    assert exc_info.value.action == action


@pytest.mark.parametrize(
    ("status", "action"),
    [
        (ConsultationStatus.CONFIRMED, ConsultationAction.CONFIRM),
        (ConsultationStatus.CONFIRMED, ConsultationAction.RESCHEDULE),
        (ConsultationStatus.PENDING, ConsultationAction.ACCEPT),
        (ConsultationStatus.PENDING, ConsultationAction.REJECT),
        (ConsultationStatus.RESCHEDULE_REQUEST, ConsultationAction.CONFIRM),
        (ConsultationStatus.RESCHEDULE_REQUEST, ConsultationAction.RESCHEDULE),
    ],
)
def test_invalid_transitions(status, action):
    assert not can_transition(status, action)
    with pytest.raises(InvalidTransitionError):
        next_status(status, action)


def test_terminal_and_active():
    assert is_terminal(ConsultationStatus.CANCELLED)
    assert not is_active(ConsultationStatus.CANCELLED)
    for status in LIVE_STATUSES:
        assert not is_terminal(status)
        assert is_active(status)


def test_status_labels():
    assert STATUS_LABELS == {
        ConsultationStatus.PENDING: "신청 중",
        ConsultationStatus.RESCHEDULE_REQUEST: "일정 조정 중",
        ConsultationStatus.CONFIRMED: "확정",
        ConsultationStatus.CANCELLED: "취소",
    }


def test_available_actions_by_role():
    assert available_actions(ConsultationStatus.PENDING, AccountRole.MANAGER) == [
        ConsultationAction.CONFIRM,
        ConsultationAction.RESCHEDULE,
        ConsultationAction.CANCEL,
    ]
    assert available_actions(ConsultationStatus.PENDING, AccountRole.USER) == [
        ConsultationAction.CANCEL,
    ]
    assert available_actions(
        ConsultationStatus.RESCHEDULE_REQUEST,
        AccountRole.USER,
    ) == [
        ConsultationAction.ACCEPT,
        ConsultationAction.REJECT,
        ConsultationAction.CANCEL,
    ]
    assert available_actions(
        ConsultationStatus.RESCHEDULE_REQUEST,
        AccountRole.MANAGER,
    ) == [ConsultationAction.CANCEL]
    assert available_actions(ConsultationStatus.CANCELLED, AccountRole.USER) == []
    assert available_actions(ConsultationStatus.CANCELLED, AccountRole.MANAGER) == []


def test_reschedule_records_proposal(make_consultation):
    consultation = make_consultation()
    proposal = RescheduleRequest(
        adjusted_date=date(2030, 5, 3),
        adjusted_time="16:00",
        adjustment_reason="매니저 출장",
    )

    updated = apply_transition(
        consultation,
        ConsultationAction.RESCHEDULE,
        proposal=proposal,
    )

    assert updated.status == ConsultationStatus.RESCHEDULE_REQUEST
    assert updated.adjusted_date == date(2030, 5, 3)
    assert updated.adjusted_time == "16:00"
    assert updated.adjustment_reason == "매니저 출장"
    assert updated.preferred_date == date(2030, 5, 1)
    assert updated.confirmed_at is None
    # Source is untouched
    assert consultation.status == ConsultationStatus.PENDING
    assert consultation.adjusted_date is None


def test_reschedule_without_proposal(make_consultation):
    with pytest.raises(ValueError):
        apply_transition(make_consultation(), ConsultationAction.RESCHEDULE)


def test_accept_copies_adjusted_schedule(make_consultation, now):
    consultation = make_consultation(
        status=ConsultationStatus.RESCHEDULE_REQUEST,
        adjustedDate="2030-05-03",
        adjustedTime="16:00",
    )

    updated = apply_transition(consultation, ConsultationAction.ACCEPT, now=now)

    assert updated.status == ConsultationStatus.CONFIRMED
    assert updated.preferred_date == date(2030, 5, 3)
    assert updated.preferred_time == "16:00"
    assert updated.confirmed_at == now


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"adjustedDate": "2030-05-03"},
        {"adjustedTime": "16:00"},
    ],
)
def test_accept_without_proposed_slot(make_consultation, fields):
    consultation = make_consultation(
        status=ConsultationStatus.RESCHEDULE_REQUEST,
        **fields,
    )

    with pytest.raises(ValueError):
        apply_transition(consultation, ConsultationAction.ACCEPT)

    assert consultation.preferred_date == date(2030, 5, 1)
    assert consultation.preferred_time == "14:00"


def test_confirm_sets_confirmed_at(make_consultation, now):
    updated = apply_transition(
        make_consultation(),
        ConsultationAction.CONFIRM,
        now=now,
    )
    assert updated.status == ConsultationStatus.CONFIRMED
    assert updated.confirmed_at == now
    assert updated.preferred_time == "14:00"


def test_reject_cancels(make_consultation):
    consultation = make_consultation(
        status=ConsultationStatus.RESCHEDULE_REQUEST,
        adjustedDate="2030-05-03",
        adjustedTime="16:00",
    )
    updated = apply_transition(consultation, ConsultationAction.REJECT)
    assert updated.status == ConsultationStatus.CANCELLED
    assert updated.preferred_date == date(2030, 5, 1)
    assert updated.confirmed_at is None


def test_apply_invalid_transition(make_consultation):
    with pytest.raises(InvalidTransitionError):
        apply_transition(
            make_consultation(status=ConsultationStatus.CANCELLED),
            ConsultationAction.CONFIRM,
        )


@pytest.mark.parametrize("status", LIVE_STATUSES)
def test_duplicate_live_consultation_rejected(make_consultation, status):
    existing = make_consultation(consultation_id=5, brand_id=42, status=status)

    with pytest.raises(DuplicateConsultationError) as exc_info:
        ensure_no_active_consultation([existing], 42)
    assert exc_info.value.existing.id == 5


def test_cancelled_or_other_brand_allows_new_request(make_consultation):
    consultations = [
        make_consultation(consultation_id=1, brand_id=42, status=ConsultationStatus.CANCELLED),
        make_consultation(consultation_id=2, brand_id=7),
    ]
    ensure_no_active_consultation(consultations, 42)
    ensure_no_active_consultation([], 42)


def test_count_by_status(make_consultation):
    consultations = [
        make_consultation(consultation_id=1),
        make_consultation(consultation_id=2),
        make_consultation(consultation_id=3, status=ConsultationStatus.CONFIRMED),
    ]
    assert count_by_status(consultations) == {
        ConsultationStatus.PENDING: 2,
        ConsultationStatus.RESCHEDULE_REQUEST: 0,
        ConsultationStatus.CONFIRMED: 1,
        ConsultationStatus.CANCELLED: 0,
    }


def test_filter_by_tab(make_consultation):
    consultations = [
        make_consultation(consultation_id=1),
        make_consultation(consultation_id=2, status=ConsultationStatus.RESCHEDULE_REQUEST),
        make_consultation(consultation_id=3, status=ConsultationStatus.CONFIRMED),
        make_consultation(consultation_id=4, status=ConsultationStatus.CANCELLED),
    ]
    assert [c.id for c in filter_by_tab(consultations, "active")] == [1, 2]
    assert [c.id for c in filter_by_tab(consultations, "done")] == [3]
    assert [c.id for c in filter_by_tab(consultations, "cancelled")] == [4]
    with pytest.raises(KeyError):
        filter_by_tab(consultations, "unknown")
