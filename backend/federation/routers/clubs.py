# federation/routers/clubs.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status as http_status
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from federation import auth, models, schemas
from federation.database import get_db

router = APIRouter(
    prefix="/clubs",
    tags=["clubs"],
    dependencies=[Depends(auth.get_current_user)],
)


def get_club_or_404(db: Session, club_id: int) -> models.Club:
    club = db.get(models.Club, club_id)
    if not club:
        raise HTTPException(status_code=404, detail="Club not found")
    return club


def _person_count(db: Session, club_id: int) -> int:
    return db.scalar(select(func.count(models.Person.id)).where(models.Person.club_id == club_id)) or 0


def _pass_count(db: Session, club_id: int) -> int:
    stmt = select(func.count(models.Pass.id)).where(
        (models.Pass.origin_club_id == club_id) | (models.Pass.destination_club_id == club_id)
    )
    return db.scalar(stmt) or 0


def club_out(db: Session, club: models.Club) -> schemas.ClubOut:
    out = schemas.ClubOut.model_validate(club)
    out.person_count = _person_count(db, club.id)
    return out


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(models.Club.id).where(models.Club.name == name)
    if exclude_id:
        stmt = stmt.where(models.Club.id != exclude_id)
    return db.scalar(stmt) is not None


@router.get("", response_model=list[schemas.ClubOut])
def list_clubs(
    q: Optional[str] = Query(None),
    include_inactive: bool = False,
    db: Session = Depends(get_db),
):
    stmt = select(models.Club)
    if not include_inactive:
        stmt = stmt.where(models.Club.is_active == True)  # noqa: E712
    if q:
        stmt = stmt.where(models.Club.name.ilike(f"%{q.strip()}%"))
    rows = db.scalars(stmt.order_by(models.Club.name.asc())).all()
    return [club_out(db, c) for c in rows]


@router.post("", response_model=schemas.ClubOut, status_code=201)
def create_club(
    payload: schemas.ClubIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    name = payload.name.strip()
    if _name_taken(db, name):
        raise HTTPException(status_code=400, detail="Club name already exists")

    club = models.Club(
        name=name,
        email=str(payload.email) if payload.email else None,
        phone=payload.phone,
        address=payload.address,
        is_active=payload.is_active,
    )
    db.add(club)
    db.commit()
    db.refresh(club)
    return club_out(db, club)


@router.get("/{club_id}", response_model=schemas.ClubOut)
def get_club(club_id: int, db: Session = Depends(get_db)):
    return club_out(db, get_club_or_404(db, club_id))


@router.get("/{club_id}/persons", response_model=list[schemas.PersonOut])
def list_club_persons(club_id: int, db: Session = Depends(get_db)):
    club = get_club_or_404(db, club_id)
    rows = db.scalars(
        select(models.Person).where(models.Person.club_id == club.id).order_by(models.Person.full_name.asc())
    ).all()
    return [schemas.PersonOut.model_validate(p).model_copy(update={"club_name": club.name}) for p in rows]


@router.patch("/{club_id}", response_model=schemas.ClubOut)
def update_club(
    club_id: int,
    payload: schemas.ClubUpdateIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    club = get_club_or_404(db, club_id)

    if payload.name is not None:
        name = payload.name.strip()
        if _name_taken(db, name, exclude_id=club.id):
            raise HTTPException(status_code=400, detail="Club name already exists")
        club.name = name
    if payload.email is not None:
        club.email = str(payload.email)
    if payload.phone is not None:
        club.phone = payload.phone
    if payload.address is not None:
        club.address = payload.address
    if payload.is_active is not None:
        club.is_active = payload.is_active

    db.commit()
    db.refresh(club)
    return club_out(db, club)


@router.delete("/{club_id}", status_code=http_status.HTTP_204_NO_CONTENT)
def delete_club(
    club_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    club = get_club_or_404(db, club_id)
    if _person_count(db, club.id) or _pass_count(db, club.id):
        raise HTTPException(status_code=400, detail="Club still has affiliates or passes")

    db.delete(club)
    db.commit()
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
