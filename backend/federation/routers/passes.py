# federation/routers/passes.py
from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from federation import auth, models, passes, schemas, status
from federation.credentials import get_person_or_404
from federation.database import get_db
from federation.dependencies import get_today
from federation.emailer import notify_admin

router = APIRouter(
    prefix="/passes",
    tags=["passes"],
    dependencies=[Depends(auth.get_current_user)],
)


def pass_out(p: models.Pass) -> schemas.PassOut:
    out = schemas.PassOut.model_validate(p)
    out.display_state = status.pass_display_state(p)
    out.badge = status.pass_badge(p.authorization)
    return out


@router.get("", response_model=list[schemas.PassOut])
def list_passes(
    authorization: Optional[schemas.PassAuthorization] = Query(None),
    db: Session = Depends(get_db),
):
    stmt = select(models.Pass)
    if authorization:
        stmt = stmt.where(models.Pass.authorization == authorization)
    rows = db.scalars(stmt.order_by(models.Pass.pass_date.desc(), models.Pass.id.desc())).all()
    return [pass_out(p) for p in rows]


@router.get("/person/{person_id}", response_model=list[schemas.PassOut])
def list_passes_for_person(person_id: int, db: Session = Depends(get_db)):
    person = get_person_or_404(db, person_id)
    return [pass_out(p) for p in person.passes]


@router.get("/club/{club_id}", response_model=list[schemas.PassOut])
def list_passes_for_club(
    club_id: int,
    direction: Literal["origin", "destination", "all"] = Query("all"),
    db: Session = Depends(get_db),
):
    if not db.get(models.Club, club_id):
        raise HTTPException(status_code=404, detail="Club not found")
    rows = db.scalars(passes.passes_for_club_stmt(club_id, direction)).all()
    return [pass_out(p) for p in rows]


@router.post("", response_model=schemas.PassOut, status_code=201)
def create_pass(
    payload: schemas.PassCreateIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    p = passes.create_pass(db, **payload.model_dump(), today=today)

    notify_admin(
        f"New pass #{p.id} ({p.authorization})",
        (
            "A club transfer was registered.\n\n"
            f"Pass ID: {p.id}\n"
            f"Affiliate: {p.person.full_name} ({p.person.dni})\n"
            f"From: {p.origin_club_name or '-'}\n"
            f"To: {p.destination_club_name}\n"
            f"Date: {p.pass_date.isoformat()}\n"
            f"Registered by: {admin.email}\n"
        ),
    )
    return pass_out(p)


@router.put("/{pass_id}/authorization", response_model=schemas.PassOut)
def update_pass_authorization(
    pass_id: int,
    payload: schemas.PassAuthorizationIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    p = passes.get_pass_or_404(db, pass_id)
    p = passes.set_authorization(db, p, payload.authorization, payload.observations)
    return pass_out(p)
