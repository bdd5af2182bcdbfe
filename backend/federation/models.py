# federation/models.py
from __future__ import annotations

from datetime import datetime, date

from sqlalchemy import (
    JSON,
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Integer,
    Date,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class Club(Base):
    __tablename__ = "clubs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    persons = relationship("Person", back_populates="club")


class User(Base):
    """Federation staff account (logs into the admin dashboard)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Values: "ADMIN" | "USER"
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="USER")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Person(Base):
    """An affiliate (player, coach, referee...) registered with the federation."""

    __tablename__ = "persons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    dni: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)

    club_id: Mapped[int | None] = mapped_column(ForeignKey("clubs.id"), nullable=True, index=True)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category_level: Mapped[str | None] = mapped_column(String(100), nullable=True)
    roles: Mapped[list] = mapped_column(JSON, default=list)  # ["Player", "Coach", ...]
    affiliation_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Mirrored from the person's current credential
    license_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    license_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    license_state: Mapped[str] = mapped_column(String(20), default="INACTIVE")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    club = relationship("Club", back_populates="persons")
    credentials = relationship(
        "Credential",
        back_populates="person",
        cascade="all, delete-orphan",
        order_by="Credential.issue_date.desc()",
    )
    passes = relationship(
        "Pass",
        back_populates="person",
        cascade="all, delete-orphan",
        order_by="Pass.pass_date.desc()",
    )


class Credential(Base):
    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    identifier: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)

    state: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")  # ACTIVE/INACTIVE/SUSPENDED/EXPIRED
    suspension_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    person_id: Mapped[int] = mapped_column(ForeignKey("persons.id"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    person = relationship("Person", back_populates="credentials")


class Pass(Base):
    """A transfer of a person from one club to another."""

    __tablename__ = "passes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    person_id: Mapped[int] = mapped_column(ForeignKey("persons.id"), nullable=False, index=True)

    # Origin is empty for a person's first club
    origin_club_id: Mapped[int | None] = mapped_column(ForeignKey("clubs.id"), nullable=True, index=True)
    origin_club_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    destination_club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id"), nullable=False, index=True)
    destination_club_name: Mapped[str] = mapped_column(String(255), nullable=False)

    pass_date: Mapped[date] = mapped_column(Date, default=date.today, index=True)
    authorization: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")  # AUTHORIZED/PENDING/REJECTED

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Affiliate data at the time of the pass (category, roles, ...)
    affiliate_snapshot: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    person = relationship("Person", back_populates="passes")
    origin_club = relationship("Club", foreign_keys=[origin_club_id])
    destination_club = relationship("Club", foreign_keys=[destination_club_id])
