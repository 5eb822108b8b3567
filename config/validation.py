# config/validation.py

"""
Environment variable validation for the directory application.
Validates required environment variables at startup.
"""

import os
import sys
from typing import List, Tuple

_INTEGER_SETTINGS = (
    "IMPORTER_MAX_UPLOAD_MB",
    "IMPORTER_ASSIGNMENT_CHUNK_SIZE",
    "IMPORTER_USER_CHUNK_SIZE",
)


def validate_environment(flask_env: str = None) -> Tuple[bool, List[str]]:
    """
    Validate required environment variables.

    Args:
        flask_env: Flask environment (development, production, testing)
                  If None, reads from FLASK_ENV environment variable

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    if flask_env is None:
        flask_env = os.environ.get("FLASK_ENV", "development")

    errors = []

    # Only validate in production
    if flask_env != "production":
        return True, []

    secret_key = os.environ.get("SECRET_KEY", "")
    if not secret_key or secret_key == "your-secret-key" or secret_key == "your_secret_key":
        errors.append(
            "SECRET_KEY is required in production and must not be the default value. "
            'Generate a secure key: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        errors.append(
            "DATABASE_URL is required in production. "
            "Set it to your PostgreSQL connection string."
        )

    for key in _INTEGER_SETTINGS:
        raw = os.environ.get(key)
        if raw is None:
            continue
        try:
            if int(raw) < 1:
                errors.append(f"{key} must be a positive integer (got {raw!r}).")
        except ValueError:
            errors.append(f"{key} must be a positive integer (got {raw!r}).")

    tiers = {
        key: os.environ.get(key, default).strip().upper()
        for key, default in (
            ("IMPORTER_COUNCIL_TIER", "C1"),
            ("IMPORTER_MAYOR_TIER", "A1"),
            ("IMPORTER_DIRECTOR_TIER", "D1"),
        )
    }
    if len(set(tiers.values())) != len(tiers):
        errors.append(
            "IMPORTER_COUNCIL_TIER, IMPORTER_MAYOR_TIER and IMPORTER_DIRECTOR_TIER must be distinct "
            f"(got {', '.join(f'{key}={value}' for key, value in tiers.items())})."
        )

    aliases_path = os.environ.get("IMPORTER_JOB_LEVEL_ALIASES_PATH")
    if aliases_path and not os.path.exists(aliases_path):
        errors.append(f"IMPORTER_JOB_LEVEL_ALIASES_PATH points to a missing file: {aliases_path}")

    is_valid = len(errors) == 0
    return is_valid, errors


def validate_and_exit(flask_env: str = None) -> None:
    """
    Validate environment variables and exit with error if validation fails.
    Intended to be called at application startup.

    Args:
        flask_env: Flask environment (development, production, testing)
    """
    is_valid, errors = validate_environment(flask_env)

    if not is_valid:
        print("=" * 80, file=sys.stderr)
        print("ENVIRONMENT VALIDATION FAILED", file=sys.stderr)
        print("=" * 80, file=sys.stderr)
        print("\nThe following environment variables are missing or invalid:\n", file=sys.stderr)

        for i, error in enumerate(errors, 1):
            print(f"{i}. {error}", file=sys.stderr)

        print("\n" + "=" * 80, file=sys.stderr)
        print("Please check your .env file or environment variables.", file=sys.stderr)
        print("=" * 80, file=sys.stderr)

        sys.exit(1)
