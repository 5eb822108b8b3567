# scripts/init_database.py

"""
Database initialization script.
This script creates all tables and seeds the job-level catalogue that the
importer validates against. Existing levels are left untouched.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from directory_app.models import JobLevel, JobLevelCategory, db

ADMIN = JobLevelCategory.ADMINISTRATIVO.value
OPERATIVE = JobLevelCategory.OPERATIVO.value

# (code, name, hierarchical_order, category); lower order is more senior
DEFAULT_JOB_LEVELS = (
    ("C1", "Concejo Municipal", 1, ADMIN),
    ("A1", "Alcalde Municipal", 2, ADMIN),
    ("A2", "Asesoria Profesional", 3, ADMIN),
    ("S2", "Secretario", 4, ADMIN),
    ("D1", "Gerente Direcciones I", 5, ADMIN),
    ("D2", "Direcciones II", 6, ADMIN),
    ("E1", "Encargados y Jefes de Unidades I", 7, ADMIN),
    ("E2", "Encargados y Jefes de Unidades II", 8, ADMIN),
    ("A3", "Administrativos I", 9, ADMIN),
    ("A4", "Administrativos II", 10, ADMIN),
    ("OTE", "Operativos Tecnico Especializado", 11, OPERATIVE),
    ("O1", "Operativos I", 12, OPERATIVE),
    ("O2", "Operativos II", 13, OPERATIVE),
    ("OS", "Otros Servicios", 14, OPERATIVE),
)


def create_default_job_levels():
    """Create the default job levels, skipping codes that already exist"""
    existing = {code for (code,) in db.session.execute(db.select(JobLevel.code))}
    created = []
    for code, name, order, category in DEFAULT_JOB_LEVELS:
        if code in existing:
            continue
        level = JobLevel(code=code, name=name, hierarchical_order=order, category=category, is_active=True)
        db.session.add(level)
        created.append(level)
    db.session.commit()
    return created


def init_database():
    """Initialize database with tables and default data"""
    with app.app_context():
        print("Creating database tables...")
        db.create_all()
        print("Database tables created (people, user_assignments, job_levels, import_runs)")

        print("Creating default job levels...")
        created = create_default_job_levels()
        print(f"Created {len(created)} job levels")
        for level in created:
            print(f"  - {level.code}: {level.name} (order {level.hierarchical_order:g})")

        print("\nDatabase initialization complete!")
        print("\nNext steps:")
        print("  1. Import people: flask importer import-users usuarios.xlsx")
        print("  2. Import assignments: flask importer import-assignments asignaciones.xlsx")


if __name__ == "__main__":
    init_database()
