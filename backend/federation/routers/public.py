# federation/routers/public.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from federation import credentials, models
from federation.database import get_db
from federation.dependencies import get_today

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/credentials/{identifier}/validate")
def validate_credential(
    identifier: str,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Target of the QR code printed on a card. No login required.
    """
    return credentials.validate_identifier(db, identifier, today=today)


@router.get("/credentials/{identifier}/qr")
def credential_qr_payload(identifier: str, db: Session = Depends(get_db)):
    """
    What the card generator encodes into the QR image (the image itself is drawn client-side).
    """
    cred = credentials.get_credential_by_identifier_or_404(db, identifier)
    return {
        "ok": True,
        "identifier": cred.identifier,
        "verification_url": credentials.verification_url(cred.identifier),
    }


@router.get("/clubs")
def list_clubs(db: Session = Depends(get_db)):
    clubs = db.scalars(
        select(models.Club).where(models.Club.is_active == True).order_by(models.Club.name.asc())  # noqa: E712
    ).all()
    return {
        "ok": True,
        "count": len(clubs),
        "clubs": [{"id": c.id, "name": c.name} for c in clubs],
    }
