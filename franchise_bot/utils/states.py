from aiogram.fsm.state import State, StatesGroup


class LoginFormStates(StatesGroup):
    """States for login form."""

    waiting_for_email = State()
    waiting_for_password = State()


class SearchFormStates(StatesGroup):
    """States for brand search."""

    waiting_for_keyword = State()


class ConsultationFormStates(StatesGroup):
    """States for consultation request form."""

    waiting_for_date = State()
    waiting_for_time = State()
    waiting_for_message = State()


class RescheduleFormStates(StatesGroup):
    """States for manager reschedule form."""

    waiting_for_date = State()
    waiting_for_time = State()
    waiting_for_reason = State()
    waiting_for_note = State()
