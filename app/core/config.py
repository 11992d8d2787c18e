import os
from pathlib import Path


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    for candidate in (current.parents[2] / ".env", current.parents[3] / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _default_database_url() -> str:
    explicit_path = os.getenv("COMPLETION_DB_PATH", "").strip()
    if explicit_path:
        return f"sqlite:///{Path(explicit_path).as_posix()}"

    backend_root = Path(__file__).resolve().parents[2]
    dev_db = (backend_root / "completion.db").resolve()
    return f"sqlite:///{dev_db.as_posix()}"


DATABASE_URL = os.getenv("DATABASE_URL", _default_database_url())
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-prod")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))

_DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173,http://localhost:5174,http://localhost:3000,"
    "http://127.0.0.1:5173,http://127.0.0.1:5174,http://127.0.0.1:3000"
)


def _normalize_cors(origins: str) -> list[str]:
    items: list[str] = []
    for raw in origins.split(","):
        value = raw.strip()
        if value and value not in items:
            items.append(value)
    return items


CORS_ORIGINS = _normalize_cors(os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS))

COMPLETION_LOG_PAGE_LIMIT = int(os.getenv("COMPLETION_LOG_PAGE_LIMIT", "50"))
COMPLETION_LOG_MAX_PAGE_LIMIT = int(os.getenv("COMPLETION_LOG_MAX_PAGE_LIMIT", "200"))
ACHIEVEMENTS_ENABLED = _env_flag("ACHIEVEMENTS_ENABLED", "true")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
