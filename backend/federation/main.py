# federation/main.py
from __future__ import annotations

import os

from fastapi import FastAPI, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from federation import __version__, auth, models, schemas
from federation.authz_errors import http_exception_handler
from federation.database import Base, SessionLocal, engine, get_db
from federation.routers import admin_users, clubs, credentials, dashboard, passes, persons, public


def _truthy(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in ("1", "true", "yes", "on")


# Optional boot debug (safe): only prints if DEBUG_ENV=1
if _truthy("DEBUG_ENV"):
    print("DATABASE_URL =", os.getenv("DATABASE_URL"))
    print("EMAIL_ENABLED =", os.getenv("EMAIL_ENABLED"))
    print("SMTP_HOST =", os.getenv("SMTP_HOST"))


# -------------------------------------------------
# DB SETUP
# -------------------------------------------------
Base.metadata.create_all(bind=engine)


# -------------------------------------------------
# APP SETUP
# -------------------------------------------------
app = FastAPI(title="Volleyball Federation Backend", version=__version__)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)

app.include_router(public.router)
app.include_router(persons.router)
app.include_router(clubs.router)
app.include_router(credentials.router)
app.include_router(passes.router)
app.include_router(dashboard.router)
app.include_router(admin_users.router)


# -------------------------------------------------
# HEALTH
# -------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/version")
def version():
    return {"version": __version__}


# -------------------------------------------------
# STARTUP: OPTIONAL DEFAULT ADMIN SEED
# -------------------------------------------------
def seed_admin_if_enabled(db: Session) -> bool:
    """
    Creates the first ADMIN account when SEED_ADMIN is on and no admin exists yet.
    Returns True if a user was created.
    """
    if not _truthy("SEED_ADMIN"):
        return False

    admin_exists = db.scalar(select(models.User).where(models.User.role == auth.ROLE_ADMIN))
    if admin_exists:
        return False

    admin_email = (os.getenv("SEED_ADMIN_EMAIL") or "admin@example.com").strip().lower()
    admin_password = (os.getenv("SEED_ADMIN_PASSWORD") or "AdminPassword123!").strip()

    db.add(
        models.User(
            email=admin_email,
            hashed_password=auth.hash_password(admin_password),
            full_name="Default Admin",
            role=auth.ROLE_ADMIN,
            is_active=True,
        )
    )
    db.commit()
    print(f"SEEDED ADMIN {admin_email}")
    return True


@app.on_event("startup")
def bootstrap_startup():
    db = SessionLocal()
    try:
        seed_admin_if_enabled(db)
    finally:
        db.close()


# -------------------------------------------------
# AUTH / LOGIN
# -------------------------------------------------
@app.post("/auth/login", response_model=schemas.TokenOut)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = (form_data.username or "").strip().lower()

    user = db.scalar(select(models.User).where(models.User.email == email))
    if not user or not auth.verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")

    token = auth.create_access_token(user_id=user.id, subject=user.email, role=user.role)
    return schemas.TokenOut(access_token=token, user_id=user.id, role=user.role)


@app.get("/auth/me", response_model=schemas.UserOut)
def me(user: models.User = Depends(auth.get_current_user)):
    return user
