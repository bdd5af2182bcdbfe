# federation/status.py
"""
Credential / pass status derivation.

Everything here is pure: callers pass plain records (dicts or ORM rows) and
the current date. Apart from parse_date, nothing here raises: bad input
comes back as a sentinel string (or False / the stored state).
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Optional

# Stored credential states
STATE_ACTIVE = "ACTIVE"
STATE_INACTIVE = "INACTIVE"
STATE_SUSPENDED = "SUSPENDED"
STATE_EXPIRED = "EXPIRED"
CREDENTIAL_STATES = (STATE_ACTIVE, STATE_INACTIVE, STATE_SUSPENDED, STATE_EXPIRED)

# Pass authorization values
PASS_AUTHORIZED = "AUTHORIZED"
PASS_PENDING = "PENDING"
PASS_REJECTED = "REJECTED"
PASS_AUTHORIZATIONS = (PASS_AUTHORIZED, PASS_PENDING, PASS_REJECTED)

# Display states (what the UI shows)
DISPLAY_ACTIVE = "ACTIVE"
DISPLAY_INACTIVE = "INACTIVE"
DISPLAY_EXPIRED = "EXPIRED"
DISPLAY_SUSPENDED = "SUSPENDED"
DISPLAY_PENDING = "PENDING"
DISPLAY_REJECTED = "REJECTED"

LABEL_SUSPENDED = "Suspended"
LABEL_EXPIRED = "Expired"
LABEL_NO_DATE = "No date available"
LABEL_INVALID_DATE = "Invalid date"
LABEL_NOT_AVAILABLE = "Not available"

_CREDENTIAL_BADGES = {
    STATE_ACTIVE: "bg-success",
    STATE_INACTIVE: "bg-secondary",
    STATE_SUSPENDED: "bg-warning text-dark",
    STATE_EXPIRED: "bg-danger",
}

_PASS_BADGES = {
    PASS_AUTHORIZED: "badge bg-success",
    PASS_PENDING: "badge bg-warning",
    PASS_REJECTED: "badge bg-danger",
}


def _field(record: Any, name: str) -> Any:
    if record is None:
        return None
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _state(record: Any, name: str = "state") -> str:
    return str(_field(record, name) or "").strip().upper()


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_date(value: Any) -> Optional[date]:
    """
    Accepts date, datetime, ISO string ("YYYY-MM-DD" or a full ISO datetime) or None.

    Returns None when the value is missing and raises ValueError when it is
    present but cannot be read as a calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    s = value.strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return datetime.fromisoformat(s).date()


def _plural(n: int, unit: str) -> str:
    return f"1 {unit}" if n == 1 else f"{n} {unit}s"


def remaining_label(credential: Any, now: date | datetime) -> str:
    """Human-readable time left on a credential ("3 days", "1 month", "Expired"...)."""
    state = _state(credential)

    if state == STATE_SUSPENDED:
        reason = str(_field(credential, "suspension_reason") or "").strip()
        return f"{LABEL_SUSPENDED}: {reason}" if reason else LABEL_SUSPENDED

    if state == STATE_EXPIRED:
        return LABEL_EXPIRED

    try:
        expiry = parse_date(_field(credential, "expiry_date"))
    except ValueError:
        return LABEL_INVALID_DATE
    if expiry is None:
        return LABEL_NO_DATE

    # Date-only: whole calendar days, so no rounding is needed
    days = (expiry - _as_date(now)).days

    if days <= 0:
        return LABEL_EXPIRED
    if days < 30:
        return _plural(days, "day")
    if days < 365:
        return _plural(days // 30, "month")
    return _plural(days // 365, "year")


def is_currently_valid(credential: Any, now: date | datetime) -> bool:
    if _state(credential) != STATE_ACTIVE:
        return False
    try:
        expiry = parse_date(_field(credential, "expiry_date"))
    except ValueError:
        return False
    if expiry is None:
        return False
    return expiry >= _as_date(now)


def select_display_credential(credentials: Iterable[Any]) -> Optional[Any]:
    """
    The credential a person's card shows by default:
    the first ACTIVE one, else the first in the list, else None.
    """
    items = list(credentials or [])
    for c in items:
        if _state(c) == STATE_ACTIVE:
            return c
    return items[0] if items else None


def derive_credential_state(credential: Any, now: date | datetime) -> str:
    """
    State a credential should be stored with on the given date.
    SUSPENDED is never overwritten; an unreadable expiry keeps the stored state.
    """
    state = _state(credential)
    if state == STATE_SUSPENDED:
        return state

    try:
        expiry = parse_date(_field(credential, "expiry_date"))
    except ValueError:
        return state
    if expiry is None:
        return state

    return STATE_ACTIVE if expiry >= _as_date(now) else STATE_EXPIRED


def credential_display_state(credential: Any, now: date | datetime) -> str:
    state = _state(credential)
    if state in (STATE_SUSPENDED, STATE_EXPIRED, STATE_INACTIVE):
        return state
    if state == STATE_ACTIVE and not is_currently_valid(credential, now):
        # ACTIVE with a date in the past (or no usable date) is shown as expired
        return DISPLAY_EXPIRED
    return state or DISPLAY_INACTIVE


def pass_display_state(pass_: Any) -> str:
    auth = _state(pass_, "authorization")
    if auth == PASS_AUTHORIZED:
        return DISPLAY_ACTIVE
    if auth == PASS_REJECTED:
        return DISPLAY_REJECTED
    return DISPLAY_PENDING


def credential_badge(state: Optional[str]) -> str:
    return _CREDENTIAL_BADGES.get(str(state or "").strip().upper(), "bg-secondary")


def pass_badge(authorization: Optional[str]) -> str:
    return _PASS_BADGES.get(str(authorization or "").strip().upper(), "badge bg-secondary")


def format_date(value: Any) -> str:
    """DD/MM/YYYY for display."""
    try:
        d = parse_date(value)
    except ValueError:
        return LABEL_INVALID_DATE
    if d is None:
        return LABEL_NOT_AVAILABLE
    return d.strftime("%d/%m/%Y")


def describe_credential(credential: Any, now: date | datetime) -> dict:
    """Everything the UI needs to render a credential's status."""
    display = credential_display_state(credential, now)
    return {
        "remaining": remaining_label(credential, now),
        "is_valid": is_currently_valid(credential, now),
        "display_state": display,
        "badge": credential_badge(display),
    }
