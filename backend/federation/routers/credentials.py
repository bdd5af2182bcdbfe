# federation/routers/credentials.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status as http_status
from sqlalchemy import select
from sqlalchemy.orm import Session

from federation import auth, credentials, models, schemas, status
from federation.database import get_db
from federation.dependencies import get_today

router = APIRouter(
    prefix="/credentials",
    tags=["credentials"],
    dependencies=[Depends(auth.get_current_user)],
)


def credential_out(cred: models.Credential, today: date) -> schemas.CredentialOut:
    out = schemas.CredentialOut.model_validate(cred)
    out.status = schemas.CredentialStatusOut(**status.describe_credential(cred, today))
    out.verification_url = credentials.verification_url(cred.identifier)
    return out


# -------------------------------------------------
# Static paths first (before /{credential_id})
# -------------------------------------------------
@router.get("", response_model=list[schemas.CredentialOut])
def list_credentials(
    state: Optional[schemas.CredentialState] = Query(None),
    person_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    stmt = select(models.Credential)
    if state:
        stmt = stmt.where(models.Credential.state == state)
    if person_id:
        stmt = stmt.where(models.Credential.person_id == person_id)
    rows = db.scalars(stmt.order_by(models.Credential.issue_date.desc(), models.Credential.id.desc())).all()
    return [credential_out(c, today) for c in rows]


@router.post("", response_model=schemas.CredentialOut, status_code=201)
def issue_credential(
    payload: schemas.CredentialCreateIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    cred = credentials.issue_credential(db, payload.person_id, issue_date=payload.issue_date, today=today)
    return credential_out(cred, today)


@router.post("/refresh-states", response_model=schemas.RefreshStatesOut)
def refresh_credential_states(
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    """Re-derive ACTIVE/EXPIRED for every non-suspended credential."""
    return credentials.refresh_all_states(db, today=today)


@router.get("/identifier/{identifier}", response_model=schemas.CredentialOut)
def get_credential_by_identifier(
    identifier: str,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    return credential_out(credentials.get_credential_by_identifier_or_404(db, identifier), today)


# -------------------------------------------------
# Single credential
# -------------------------------------------------
@router.get("/{credential_id}", response_model=schemas.CredentialOut)
def get_credential(
    credential_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    return credential_out(credentials.get_credential_or_404(db, credential_id), today)


@router.put("/{credential_id}", response_model=schemas.CredentialOut)
def update_credential(
    credential_id: int,
    payload: schemas.CredentialUpdateIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    cred = credentials.get_credential_or_404(db, credential_id)
    cred = credentials.update_credential(
        db,
        cred,
        issue_date=payload.issue_date,
        expiry_date=payload.expiry_date,
        state=payload.state,
        suspension_reason=payload.suspension_reason,
    )
    return credential_out(cred, today)


@router.post("/{credential_id}/renew", response_model=schemas.CredentialOut)
def renew_credential(
    credential_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    cred = credentials.get_credential_or_404(db, credential_id)
    return credential_out(credentials.renew_credential(db, cred, today=today), today)


@router.post("/{credential_id}/suspend", response_model=schemas.CredentialOut)
def suspend_credential(
    credential_id: int,
    payload: schemas.CredentialSuspendIn,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    cred = credentials.get_credential_or_404(db, credential_id)
    return credential_out(credentials.suspend_credential(db, cred, payload.reason), today)


@router.post("/{credential_id}/reactivate", response_model=schemas.CredentialOut)
def reactivate_credential(
    credential_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    admin: models.User = Depends(auth.require_admin),
):
    cred = credentials.get_credential_or_404(db, credential_id)
    return credential_out(credentials.reactivate_credential(db, cred, today=today), today)


@router.delete("/{credential_id}", status_code=http_status.HTTP_204_NO_CONTENT)
def delete_credential(
    credential_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    cred = credentials.get_credential_or_404(db, credential_id)
    credentials.delete_credential(db, cred)
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
