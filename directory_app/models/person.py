# directory_app/models/person.py
"""
People in the organizational directory and their supervisor assignments.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, db
from .enums import PersonRole, PersonStatus


class Person(BaseModel):
    """Directory entry keyed by the national identifier (DPI)."""

    __tablename__ = "people"

    id: Mapped[int] = mapped_column(db.Integer, primary_key=True)
    dpi: Mapped[str] = mapped_column(db.String(20), unique=True, nullable=False, index=True)
    nombre: Mapped[str] = mapped_column(db.String(255), nullable=False)
    apellidos: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    fecha_nacimiento: Mapped[str] = mapped_column(
        db.String(8), nullable=False, comment="DDMMYYYY"
    )
    fecha_ingreso: Mapped[date | None] = mapped_column(db.Date, nullable=True)
    nivel: Mapped[str] = mapped_column(db.String(10), nullable=False, index=True)
    cargo: Mapped[str] = mapped_column(db.String(255), nullable=False)
    area: Mapped[str] = mapped_column(db.String(255), nullable=False)
    genero: Mapped[str | None] = mapped_column(db.String(20), nullable=True)
    rol: Mapped[str] = mapped_column(
        db.String(20), nullable=False, default=PersonRole.COLABORADOR.value, index=True
    )
    estado: Mapped[str] = mapped_column(
        db.String(20), nullable=False, default=PersonStatus.ACTIVE.value, index=True
    )
    primer_ingreso: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=True)

    supervised_assignments = relationship(
        "Assignment",
        foreign_keys="Assignment.jefe_id",
        back_populates="supervisor",
        passive_deletes=True,
    )
    collaborator_assignments = relationship(
        "Assignment",
        foreign_keys="Assignment.colaborador_id",
        back_populates="collaborator",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.nombre} {self.apellidos}".strip()

    @property
    def is_active(self) -> bool:
        return self.estado == PersonStatus.ACTIVE.value

    def __repr__(self):
        return f"<Person {self.dpi} nivel={self.nivel} rol={self.rol}>"


class Assignment(BaseModel):
    """Supervisor (jefe) to collaborator assignment."""

    __tablename__ = "user_assignments"

    id: Mapped[int] = mapped_column(db.Integer, primary_key=True)
    colaborador_id: Mapped[str] = mapped_column(
        ForeignKey("people.dpi", ondelete="CASCADE"), nullable=False
    )
    jefe_id: Mapped[str] = mapped_column(
        ForeignKey("people.dpi", ondelete="CASCADE"), nullable=False, index=True
    )
    grupo_id: Mapped[str | None] = mapped_column(db.String(100), nullable=True)
    activo: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=True)

    collaborator = relationship(
        "Person", foreign_keys=[colaborador_id], back_populates="collaborator_assignments"
    )
    supervisor = relationship(
        "Person", foreign_keys=[jefe_id], back_populates="supervised_assignments"
    )

    __table_args__ = (
        UniqueConstraint("colaborador_id", "jefe_id", name="uq_user_assignments_pair"),
        CheckConstraint("colaborador_id <> jefe_id", name="ck_user_assignments_not_self"),
        Index("idx_user_assignments_jefe_activo", "jefe_id", "activo"),
    )

    def __repr__(self):
        return f"<Assignment {self.colaborador_id} -> {self.jefe_id} activo={self.activo}>"
