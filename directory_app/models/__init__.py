# directory_app/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, db
from .enums import Gender, JobLevelCategory, PersonRole, PersonStatus
from .import_run import ImportRun, ImportRunStatus
from .job_level import JobLevel
from .person import Assignment, Person

__all__ = [
    "db",
    "BaseModel",
    "Person",
    "Assignment",
    "JobLevel",
    "ImportRun",
    "ImportRunStatus",
    "Gender",
    "JobLevelCategory",
    "PersonRole",
    "PersonStatus",
]
