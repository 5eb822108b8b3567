# directory_app/models/enums.py
"""
Enums for directory models.

Values are stored as plain strings so dialect-level upserts can bind them
without enum type coercion.
"""

import enum


class PersonRole(str, enum.Enum):
    """Application role held by a person in the directory"""

    COLABORADOR = "colaborador"
    JEFE = "jefe"
    ADMIN_RRHH = "admin_rrhh"
    ADMIN_GENERAL = "admin_general"


class PersonStatus(str, enum.Enum):
    """Directory status of a person"""

    ACTIVE = "activo"
    INACTIVE = "inactivo"


class Gender(str, enum.Enum):
    """Gender values accepted by the directory"""

    MASCULINO = "masculino"
    FEMENINO = "femenino"
    OTRO = "otro"
    PREFIERO_NO_DECIR = "prefiero_no_decir"


class JobLevelCategory(str, enum.Enum):
    """Job level category"""

    ADMINISTRATIVO = "administrativo"
    OPERATIVO = "operativo"
