# federation/routers/persons.py
from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status as http_status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from federation import auth, models, passes, schemas, status
from federation.credentials import get_person_or_404
from federation.database import get_db
from federation.dependencies import get_today
from federation.routers.credentials import credential_out

router = APIRouter(
    prefix="/persons",
    tags=["persons"],
    dependencies=[Depends(auth.get_current_user)],
)


# ----------------------------
# Helpers
# ----------------------------
def person_out(p: models.Person) -> schemas.PersonOut:
    out = schemas.PersonOut.model_validate(p)
    out.club_name = p.club.name if p.club else None
    return out


def _club_or_400(db: Session, club_id: Optional[int]) -> Optional[models.Club]:
    if not club_id:
        return None
    club = db.get(models.Club, club_id)
    if not club:
        raise HTTPException(status_code=400, detail="Club does not exist")
    return club


def _dni_taken(db: Session, dni: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(models.Person.id).where(models.Person.dni == dni)
    if exclude_id:
        stmt = stmt.where(models.Person.id != exclude_id)
    return db.scalar(stmt) is not None


def _search_stmt(q: Optional[str], club_id: Optional[int], license_state: Optional[str]):
    stmt = select(models.Person)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where((models.Person.full_name.ilike(like)) | (models.Person.dni.ilike(like)))
    if club_id:
        stmt = stmt.where(models.Person.club_id == club_id)
    if license_state:
        stmt = stmt.where(models.Person.license_state == license_state)
    return stmt.order_by(models.Person.full_name.asc(), models.Person.id.asc())


# ----------------------------
# Endpoints
# ----------------------------
@router.get("", response_model=List[schemas.PersonOut])
def list_persons(
    q: Optional[str] = Query(None, description="Name or DNI fragment"),
    club_id: Optional[int] = Query(None),
    license_state: Optional[schemas.CredentialState] = Query(None),
    limit: int = Query(300, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    rows = db.scalars(_search_stmt(q, club_id, license_state).limit(limit)).all()
    return [person_out(p) for p in rows]


@router.post("", response_model=schemas.PersonOut, status_code=201)
def create_person(
    payload: schemas.PersonIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    dni = payload.dni.strip()
    if _dni_taken(db, dni):
        raise HTTPException(status_code=400, detail="DNI already registered")
    _club_or_400(db, payload.club_id)

    person = models.Person(**payload.model_dump(exclude={"dni"}), dni=dni)
    db.add(person)
    db.commit()
    db.refresh(person)
    return person_out(person)


@router.get("/export.csv")
def export_persons_csv(
    q: Optional[str] = Query(None),
    club_id: Optional[int] = Query(None),
    license_state: Optional[schemas.CredentialState] = Query(None),
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    rows = db.scalars(_search_stmt(q, club_id, license_state)).all()

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(
        [
            "id",
            "full_name",
            "dni",
            "birth_date",
            "club",
            "category",
            "roles",
            "license_state",
            "license_expiry",
        ]
    )
    for p in rows:
        writer.writerow(
            [
                p.id,
                p.full_name,
                p.dni,
                status.format_date(p.birth_date),
                p.club.name if p.club else "",
                p.category or "",
                "; ".join(p.roles or []),
                p.license_state,
                status.format_date(p.license_expiry),
            ]
        )

    filename = f"affiliates_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    return StreamingResponse(iter([buf.getvalue()]), media_type="text/csv", headers=headers)


@router.get("/{person_id}", response_model=schemas.PersonOut)
def get_person(person_id: int, db: Session = Depends(get_db)):
    return person_out(get_person_or_404(db, person_id))


@router.put("/{person_id}", response_model=schemas.PersonOut)
def update_person(
    person_id: int,
    payload: schemas.PersonUpdateIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    """
    Partial update. Moving the affiliate to another club records an authorized pass.
    """
    person = get_person_or_404(db, person_id)
    data = payload.model_dump(exclude_unset=True)

    if data.get("dni") is not None:
        data["dni"] = data["dni"].strip()
        if _dni_taken(db, data["dni"], exclude_id=person.id):
            raise HTTPException(status_code=400, detail="DNI already registered")

    club_sent = "club_id" in data
    new_club_id = data.pop("club_id", None)
    old_club = person.club

    for field, value in data.items():
        if value is not None:
            setattr(person, field, value)

    if new_club_id and new_club_id != person.club_id:
        new_club = _club_or_400(db, new_club_id)
        passes.register_automatic_pass(db, person, old_club, new_club, today=today)
        person.club_id = new_club.id
    elif club_sent and new_club_id is None:
        # explicit null leaves the affiliate without a club; no pass is recorded
        person.club_id = None

    person.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(person)
    return person_out(person)


@router.delete("/{person_id}", status_code=http_status.HTTP_204_NO_CONTENT)
def delete_person(
    person_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    person = get_person_or_404(db, person_id)
    db.delete(person)
    db.commit()
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)


@router.get("/{person_id}/credentials", response_model=schemas.PersonCredentialsOut)
def list_person_credentials(
    person_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Newest first. selected_credential_id is the one the card shows by default.
    """
    person = get_person_or_404(db, person_id)
    creds = list(person.credentials)
    selected = status.select_display_credential(creds)

    return schemas.PersonCredentialsOut(
        person_id=person.id,
        total=len(creds),
        selected_credential_id=selected.id if selected else None,
        credentials=[credential_out(c, today) for c in creds],
    )
