# federation/routers/admin_users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from federation import auth, models, schemas
from federation.database import get_db


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(auth.require_admin)],
)


def _get_user_or_404(db: Session, user_id: int) -> models.User:
    u = db.get(models.User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return u


@router.get("/users", response_model=list[schemas.UserOut])
def admin_list_users(db: Session = Depends(get_db)):
    stmt = select(models.User).order_by(func.coalesce(models.User.full_name, "ZZZ"), models.User.email)
    return db.scalars(stmt).all()


@router.post("/users", response_model=schemas.UserOut, status_code=201)
def admin_create_user(payload: schemas.UserCreateIn, db: Session = Depends(get_db)):
    email = str(payload.email).strip().lower()
    if db.scalar(select(models.User).where(models.User.email == email)):
        raise HTTPException(status_code=400, detail="Email already exists")

    user = models.User(
        email=email,
        hashed_password=auth.hash_password(payload.password),
        full_name=payload.full_name,
        role=auth.normalize_role(payload.role),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.patch("/users/{user_id}", response_model=schemas.UserOut)
def admin_update_user(
    user_id: int,
    payload: schemas.UserUpdateIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    u = _get_user_or_404(db, user_id)

    if u.id == admin.id and payload.role is not None and payload.role != auth.ROLE_ADMIN:
        raise HTTPException(status_code=400, detail="You cannot remove your own admin role")

    if payload.full_name is not None:
        u.full_name = payload.full_name
    if payload.role is not None:
        u.role = auth.normalize_role(payload.role)

    db.commit()
    db.refresh(u)
    return u


@router.patch("/users/{user_id}/active", response_model=schemas.UserOut)
def admin_set_user_active(
    user_id: int,
    payload: schemas.UserActiveIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    u = _get_user_or_404(db, user_id)

    if u.id == admin.id and payload.is_active is False:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    u.is_active = payload.is_active
    db.commit()
    db.refresh(u)
    return u


@router.patch("/users/{user_id}/password", status_code=200)
def admin_reset_user_password(
    user_id: int,
    payload: schemas.PasswordResetIn,
    db: Session = Depends(get_db),
):
    u = _get_user_or_404(db, user_id)
    u.hashed_password = auth.hash_password(payload.password)
    db.commit()
    return {"ok": True}
