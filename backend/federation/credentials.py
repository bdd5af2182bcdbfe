# federation/credentials.py
from __future__ import annotations

import os
import secrets
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from . import models, status

CREDENTIAL_VALIDITY_YEARS = 1
CREDENTIAL_PREFIX = (os.getenv("CREDENTIAL_PREFIX") or "FJV").strip()


def _today() -> date:
    return date.today()


def add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # Feb 29 -> Feb 28 on non-leap years
        return d.replace(year=d.year + years, day=28)


def frontend_base_url() -> str:
    base = (os.getenv("FRONTEND_URL") or "").strip().rstrip("/")
    return base or "http://localhost:4200"


def verification_url(identifier: str) -> str:
    return f"{frontend_base_url()}/verify-credential/{identifier}"


def make_identifier(db: Session, person_id: int, issued: date) -> str:
    """PREFIX-<person>-<year>-<nnn>, retried until unused."""
    while True:
        candidate = f"{CREDENTIAL_PREFIX}-{person_id}-{issued.year}-{secrets.randbelow(1000):03d}"
        taken = db.scalar(select(models.Credential.id).where(models.Credential.identifier == candidate))
        if not taken:
            return candidate


# -------------------------------------------------
# Lookups
# -------------------------------------------------
def get_person_or_404(db: Session, person_id: int) -> models.Person:
    person = db.get(models.Person, person_id)
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


def get_credential_or_404(db: Session, credential_id: int) -> models.Credential:
    cred = db.get(models.Credential, credential_id)
    if not cred:
        raise HTTPException(status_code=404, detail="Credential not found")
    return cred


def get_credential_by_identifier_or_404(db: Session, identifier: str) -> models.Credential:
    cred = db.scalar(select(models.Credential).where(models.Credential.identifier == identifier))
    if not cred:
        raise HTTPException(status_code=404, detail="Credential not found")
    return cred


# -------------------------------------------------
# Person license mirror
# -------------------------------------------------
def sync_person_license(person: Optional[models.Person], cred: models.Credential) -> None:
    if person is None:
        return
    person.license_date = cred.issue_date
    person.license_expiry = cred.expiry_date
    person.license_state = cred.state
    person.updated_at = datetime.utcnow()


def _touch(cred: models.Credential) -> None:
    cred.updated_at = datetime.utcnow()


# -------------------------------------------------
# Lifecycle operations
# -------------------------------------------------
def issue_credential(
    db: Session,
    person_id: int,
    issue_date: Optional[date] = None,
    today: Optional[date] = None,
) -> models.Credential:
    person = get_person_or_404(db, person_id)
    today = today or _today()

    active = db.scalar(
        select(models.Credential).where(
            models.Credential.person_id == person.id,
            models.Credential.state == status.STATE_ACTIVE,
        )
    )
    if active:
        raise HTTPException(status_code=400, detail="Person already has an active credential")

    issued = issue_date or today
    expiry = add_years(issued, CREDENTIAL_VALIDITY_YEARS)

    cred = models.Credential(
        identifier=make_identifier(db, person.id, issued),
        issue_date=issued,
        expiry_date=expiry,
        state=status.STATE_ACTIVE if expiry >= today else status.STATE_INACTIVE,
        person_id=person.id,
    )
    db.add(cred)
    sync_person_license(person, cred)

    db.commit()
    db.refresh(cred)
    return cred


def update_credential(
    db: Session,
    cred: models.Credential,
    *,
    issue_date: Optional[date] = None,
    expiry_date: Optional[date] = None,
    state: Optional[str] = None,
    suspension_reason: Optional[str] = None,
) -> models.Credential:
    if state == status.STATE_SUSPENDED and not (suspension_reason or "").strip():
        raise HTTPException(status_code=400, detail="A suspension reason is required")

    new_issue = issue_date or cred.issue_date
    new_expiry = expiry_date or cred.expiry_date
    if new_expiry <= new_issue:
        raise HTTPException(status_code=400, detail="Expiry date must be after the issue date")

    cred.issue_date = new_issue
    cred.expiry_date = new_expiry
    if state:
        cred.state = state
        if state == status.STATE_SUSPENDED:
            cred.suspension_reason = suspension_reason.strip()
        else:
            cred.suspension_reason = None
    _touch(cred)
    sync_person_license(cred.person, cred)

    db.commit()
    db.refresh(cred)
    return cred


def renew_credential(db: Session, cred: models.Credential, today: Optional[date] = None) -> models.Credential:
    """Restart the validity window from today and reactivate."""
    today = today or _today()

    cred.issue_date = today
    cred.expiry_date = add_years(today, CREDENTIAL_VALIDITY_YEARS)
    cred.state = status.STATE_ACTIVE
    cred.suspension_reason = None
    _touch(cred)
    sync_person_license(cred.person, cred)

    db.commit()
    db.refresh(cred)
    return cred


def suspend_credential(db: Session, cred: models.Credential, reason: str) -> models.Credential:
    reason = (reason or "").strip()
    if not reason:
        raise HTTPException(status_code=400, detail="A suspension reason is required")

    cred.state = status.STATE_SUSPENDED
    cred.suspension_reason = reason
    _touch(cred)
    if cred.person is not None:
        cred.person.license_state = status.STATE_SUSPENDED

    db.commit()
    db.refresh(cred)
    return cred


def reactivate_credential(db: Session, cred: models.Credential, today: Optional[date] = None) -> models.Credential:
    if cred.state != status.STATE_SUSPENDED:
        raise HTTPException(status_code=400, detail="Credential is not suspended")

    today = today or _today()
    cred.state = status.STATE_ACTIVE if cred.expiry_date >= today else status.STATE_EXPIRED
    cred.suspension_reason = None
    _touch(cred)
    if cred.person is not None:
        cred.person.license_state = cred.state

    db.commit()
    db.refresh(cred)
    return cred


def delete_credential(db: Session, cred: models.Credential) -> None:
    person = cred.person

    if cred.state == status.STATE_ACTIVE and person is not None:
        other_active = db.scalar(
            select(func.count(models.Credential.id)).where(
                models.Credential.person_id == person.id,
                models.Credential.state == status.STATE_ACTIVE,
                models.Credential.id != cred.id,
            )
        ) or 0
        if other_active == 0:
            person.license_state = status.STATE_INACTIVE

    db.delete(cred)
    db.commit()


def refresh_all_states(db: Session, today: Optional[date] = None) -> dict:
    """
    Re-derive the stored state of every credential from its expiry date.
    Suspended credentials are left alone.
    """
    today = today or _today()
    creds = db.scalars(select(models.Credential)).all()

    updated = 0
    for cred in creds:
        new_state = status.derive_credential_state(cred, today)
        if new_state != cred.state:
            cred.state = new_state
            _touch(cred)
            if cred.person is not None:
                cred.person.license_state = new_state
            updated += 1

    db.commit()
    return {"total": len(creds), "updated": updated}


def validate_identifier(db: Session, identifier: str, today: Optional[date] = None) -> dict:
    """
    Public check of a credential (what the QR code points to).
    ACTIVE/INACTIVE rows that disagree with their expiry date are corrected on the way:
    out of date becomes INACTIVE, in date becomes ACTIVE.
    """
    today = today or _today()
    cred = get_credential_by_identifier_or_404(db, identifier)

    if cred.state in (status.STATE_ACTIVE, status.STATE_INACTIVE):
        healed = status.derive_credential_state(cred, today)
        if healed == status.STATE_EXPIRED:
            healed = status.STATE_INACTIVE
        if healed != cred.state:
            cred.state = healed
            _touch(cred)
            if cred.person is not None:
                cred.person.license_state = healed
            db.commit()
            db.refresh(cred)

    person = cred.person
    return {
        "valid": True,
        "active": cred.state == status.STATE_ACTIVE,
        "expired": cred.expiry_date < today,
        "today": today.isoformat(),
        "credential": {
            "identifier": cred.identifier,
            "issue_date": cred.issue_date.isoformat(),
            "expiry_date": cred.expiry_date.isoformat(),
            "state": cred.state,
            "remaining": status.remaining_label(cred, today),
        },
        "person": (
            {
                "full_name": person.full_name,
                "dni": person.dni,
                "birth_date": person.birth_date.isoformat() if person.birth_date else None,
                "photo_url": person.photo_url,
                "category": person.category,
            }
            if person is not None
            else None
        ),
    }
