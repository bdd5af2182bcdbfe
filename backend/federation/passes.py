# federation/passes.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models, status
from .credentials import get_person_or_404

DIRECTION_ORIGIN = "origin"
DIRECTION_DESTINATION = "destination"
DIRECTION_ALL = "all"


def _clean(s: Optional[str]) -> str:
    return (s or "").strip()


def find_club(db: Session, club_id: Optional[int], club_name: Optional[str]) -> Optional[models.Club]:
    """By id when given, else by exact (trimmed) name."""
    if club_id:
        return db.get(models.Club, club_id)
    name = _clean(club_name)
    if not name:
        return None
    return db.scalar(select(models.Club).where(models.Club.name == name))


def affiliate_snapshot(person: models.Person) -> dict:
    return {
        "full_name": person.full_name,
        "dni": person.dni,
        "category": person.category,
        "category_level": person.category_level,
        "roles": list(person.roles or []),
        "license_state": person.license_state,
    }


def get_pass_or_404(db: Session, pass_id: int) -> models.Pass:
    p = db.get(models.Pass, pass_id)
    if not p:
        raise HTTPException(status_code=404, detail="Pass not found")
    return p


def create_pass(
    db: Session,
    *,
    person_id: int,
    destination_club_id: Optional[int] = None,
    destination_club_name: Optional[str] = None,
    origin_club_id: Optional[int] = None,
    origin_club_name: Optional[str] = None,
    pass_date: Optional[date] = None,
    reason: Optional[str] = None,
    observations: Optional[str] = None,
    today: Optional[date] = None,
) -> models.Pass:
    person = get_person_or_404(db, person_id)

    if not destination_club_id and not _clean(destination_club_name):
        raise HTTPException(status_code=400, detail="Destination club is required")

    destination = find_club(db, destination_club_id, destination_club_name)
    if not destination:
        raise HTTPException(
            status_code=400,
            detail=f"Destination club '{destination_club_name or destination_club_id}' does not exist",
        )

    origin = None
    if origin_club_id or _clean(origin_club_name):
        origin = find_club(db, origin_club_id, origin_club_name)
        if not origin:
            raise HTTPException(
                status_code=400,
                detail=f"Origin club '{origin_club_name or origin_club_id}' does not exist",
            )
        if origin.id == destination.id:
            raise HTTPException(status_code=400, detail="Origin and destination clubs must differ")

    p = models.Pass(
        person_id=person.id,
        origin_club_id=origin.id if origin else None,
        origin_club_name=origin.name if origin else None,
        destination_club_id=destination.id,
        destination_club_name=destination.name,
        pass_date=pass_date or today or date.today(),
        authorization=status.PASS_PENDING,
        reason=reason,
        observations=observations,
        affiliate_snapshot=affiliate_snapshot(person),
    )
    db.add(p)

    person.club_id = destination.id
    person.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(p)
    return p


def set_authorization(
    db: Session,
    p: models.Pass,
    authorization: str,
    observations: Optional[str] = None,
) -> models.Pass:
    p.authorization = authorization
    if observations is not None:
        p.observations = observations
    db.commit()
    db.refresh(p)
    return p


def register_automatic_pass(
    db: Session,
    person: models.Person,
    old_club: Optional[models.Club],
    new_club: models.Club,
    today: Optional[date] = None,
) -> models.Pass:
    """
    Record the club change made from the affiliate form. Authorized right away.
    At most one per (person, destination, day). Does not commit.
    """
    today = today or date.today()

    existing = db.scalar(
        select(models.Pass).where(
            models.Pass.person_id == person.id,
            models.Pass.destination_club_id == new_club.id,
            models.Pass.pass_date == today,
        )
    )
    old_name = old_club.name if old_club else None
    if existing:
        print(f"PASS ALREADY REGISTERED today: {old_name or 'No club'} -> {new_club.name} (person {person.id})")
        return existing

    p = models.Pass(
        person_id=person.id,
        origin_club_id=old_club.id if old_club else None,
        origin_club_name=old_name,
        destination_club_id=new_club.id,
        destination_club_name=new_club.name,
        pass_date=today,
        authorization=status.PASS_AUTHORIZED,
        reason="Club change from affiliate form",
        affiliate_snapshot=affiliate_snapshot(person),
    )
    db.add(p)
    print(f"PASS REGISTERED: {old_name or 'No club'} -> {new_club.name} (person {person.id})")
    return p


def passes_for_club_stmt(club_id: int, direction: str = DIRECTION_ALL):
    stmt = select(models.Pass)
    if direction == DIRECTION_ORIGIN:
        stmt = stmt.where(models.Pass.origin_club_id == club_id)
    elif direction == DIRECTION_DESTINATION:
        stmt = stmt.where(models.Pass.destination_club_id == club_id)
    else:
        stmt = stmt.where(
            (models.Pass.origin_club_id == club_id) | (models.Pass.destination_club_id == club_id)
        )
    return stmt.order_by(models.Pass.pass_date.desc(), models.Pass.id.desc())
