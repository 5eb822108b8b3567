# config.py
import os


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_extension_list(value, *, default=("xlsx", "xls", "csv")):
    """
    Parse a comma-separated extension list while keeping order and removing duplicates.

    Returns:
        tuple[str, ...]: Lower-case extensions without leading dots.
    """
    if not value:
        return tuple(default)

    seen = set()
    extensions = []
    for raw_item in value.split(","):
        item = raw_item.strip().lstrip(".").lower()
        if not item or item in seen:
            continue
        seen.add(item)
        extensions.append(item)
    return tuple(extensions) or tuple(default)


def _parse_int(value, *, default, minimum=1, maximum=None):
    """
    Parse an integer setting, falling back to ``default`` when invalid or out of bounds.
    """

    try:
        number = int(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    if number < minimum or (maximum is not None and number > maximum):
        return default
    return number


def _parse_float(value, *, default, minimum=0.0):
    try:
        number = float(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    return number if number >= minimum else default


class Config:
    # SECRET_KEY must be set via environment variable for security
    # Generate with: python -c "import secrets; print(secrets.token_hex(32))"
    _flask_env = os.environ.get("FLASK_ENV", "development")
    _is_testing = _flask_env == "testing"
    _is_production = _flask_env == "production"

    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Only require SECRET_KEY in production mode
    if not SECRET_KEY and _is_production:
        raise ValueError(
            "SECRET_KEY environment variable is required in production. "
            'Generate with: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    # For development, use a default but it's not secure
    if not SECRET_KEY and not _is_testing:
        import warnings

        warnings.warn(
            "SECRET_KEY not set. Using default for development only. "
            "Set SECRET_KEY environment variable or generate with: "
            'python -c "import secrets; print(secrets.token_hex(32))"',
            UserWarning,
        )
        SECRET_KEY = "dev-secret-key-change-in-production"

    if not SECRET_KEY:
        SECRET_KEY = "test-secret-key-placeholder"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Importer configuration
    IMPORTER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_ENABLED"), default=True)
    IMPORTER_ALLOWED_EXTENSIONS = _parse_extension_list(os.environ.get("IMPORTER_ALLOWED_EXTENSIONS"))
    IMPORTER_MAX_UPLOAD_MB = _parse_int(os.environ.get("IMPORTER_MAX_UPLOAD_MB"), default=25, maximum=500)
    MAX_CONTENT_LENGTH = IMPORTER_MAX_UPLOAD_MB * 1024 * 1024

    # Chunked loading: assignments cascade a role update per record, so they use smaller chunks
    IMPORTER_ASSIGNMENT_CHUNK_SIZE = _parse_int(os.environ.get("IMPORTER_ASSIGNMENT_CHUNK_SIZE"), default=10)
    IMPORTER_USER_CHUNK_SIZE = _parse_int(os.environ.get("IMPORTER_USER_CHUNK_SIZE"), default=50)
    IMPORTER_CHUNK_PAUSE_SECONDS = _parse_float(os.environ.get("IMPORTER_CHUNK_PAUSE_SECONDS"), default=0.1)

    # Special tiers for evaluation permissions
    IMPORTER_COUNCIL_TIER = os.environ.get("IMPORTER_COUNCIL_TIER", "C1").strip().upper()
    IMPORTER_MAYOR_TIER = os.environ.get("IMPORTER_MAYOR_TIER", "A1").strip().upper()
    IMPORTER_DIRECTOR_TIER = os.environ.get("IMPORTER_DIRECTOR_TIER", "D1").strip().upper()

    IMPORTER_JOB_LEVEL_ALIASES_PATH = os.environ.get("IMPORTER_JOB_LEVEL_ALIASES_PATH")


class DevelopmentConfig(Config):
    DEBUG = True
    # Use instance folder for database to avoid conflicts
    _config_dir = os.path.dirname(os.path.abspath(__file__))
    _project_root = os.path.dirname(_config_dir)
    instance_path = os.path.join(_project_root, "instance")

    if not os.path.exists(instance_path):
        os.makedirs(instance_path, exist_ok=True)

    # SQLite URI format: sqlite:///absolute/path (3 slashes for absolute path)
    db_path = os.path.join(instance_path, "directory_dev.db").replace("\\", "/")
    db_uri = f"sqlite:///{db_path}"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", db_uri)
    SQLALCHEMY_ECHO = _coerce_bool(os.environ.get("SQLALCHEMY_ECHO"), default=False)
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": 5,
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key-for-testing-only")
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"  # In-memory database for testing
    SQLALCHEMY_ECHO = False
    IMPORTER_ENABLED = True
    IMPORTER_CHUNK_PAUSE_SECONDS = 0.0
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {
            "check_same_thread": False,
            "timeout": 5,
        }
    }


class ProductionConfig(Config):
    DEBUG = False
    uri = os.environ.get("DATABASE_URL")
    if uri and uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_ECHO = False
