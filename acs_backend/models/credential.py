"""
ORM models for the credential store.

People belong (optionally) to a department and own zero or more
credentials. A credential is linked to at most one access group through
its CredentialAccess row; the access group itself lives in the
other-group store and is referenced by id only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import CredentialBase


CREDENTIAL_STATUS_INACTIVE = 0
CREDENTIAL_STATUS_ACTIVE = 1


class Department(CredentialBase):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class People(CredentialBase):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(64))
    last_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    code: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    department_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    credentials: Mapped[list[Credential]] = relationship("Credential", back_populates="people")


class Credential(CredentialBase):
    __tablename__ = "credentials"

    unique_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    people_id: Mapped[int] = mapped_column(Integer, ForeignKey("people.id"), index=True)
    card_no: Mapped[str] = mapped_column(String(64), index=True)
    facility_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    biometric: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[int] = mapped_column(Integer, default=CREDENTIAL_STATUS_ACTIVE)
    valid_from: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    valid_to: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    people: Mapped[People] = relationship("People", back_populates="credentials")


class CredentialAccess(CredentialBase):
    __tablename__ = "credential_access"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    credential_id: Mapped[int] = mapped_column(Integer, ForeignKey("credentials.unique_id"), unique=True, index=True)
    access_group_id: Mapped[int] = mapped_column(Integer, index=True)  # other-group store
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
