# directory_app/models/job_level.py

from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, db


class JobLevel(BaseModel):
    """
    Reference table of job-level codes (tiers).

    ``hierarchical_order`` ranks seniority: lower values are more senior.
    """

    __tablename__ = "job_levels"

    id: Mapped[int] = mapped_column(db.Integer, primary_key=True)
    code: Mapped[str] = mapped_column(db.String(10), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    hierarchical_order: Mapped[float] = mapped_column(db.Float, nullable=False)
    category: Mapped[str | None] = mapped_column(db.String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<JobLevel {self.code} order={self.hierarchical_order}>"
