import os
import json
import logging
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from dotenv import load_dotenv

load_dotenv()


def _json_env(name: str, default: Dict[str, float]) -> Dict[str, float]:
    raw = os.getenv(name)
    if not raw:
        return dict(default)
    return {str(k): float(v) for k, v in json.loads(raw).items()}


class ScoringSettings(BaseModel):
    # {label: min_score}; anything below the lowest band falls to the floor label
    grade_boundaries: Dict[str, float] = Field(
        default_factory=lambda: _json_env("GRADE_BOUNDARIES", {"S": 95, "A": 85, "B": 70, "C": 60})
    )
    grade_floor: str = "D"
    status_boundaries: Dict[str, float] = Field(
        default_factory=lambda: _json_env("STATUS_BOUNDARIES", {"EXCELLENT": 90, "GOOD": 75, "AVERAGE": 60})
    )
    status_floor: str = "POOR"
    default_score_cap: float = float(os.getenv("SCORE_CAP", "120"))
    default_score_floor: float = float(os.getenv("SCORE_FLOOR", "0"))


class BusinessTodoSettings(BaseModel):
    expiring_window_days: int = int(os.getenv("TODO_EXPIRING_WINDOW_DAYS", "7"))
    low_performance_threshold: float = float(os.getenv("TODO_LOW_PERFORMANCE_THRESHOLD", "60"))
    approval_limit: int = 10
    low_performance_limit: int = 5
    calibration_limit: int = 5
    interview_limit: int = 5
    draft_limit: int = 5


class Config(BaseModel):
    app_name: str = "Performance Management Platform"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    login_rate_limit: str = os.getenv("LOGIN_RATE_LIMIT", "20/minute")

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Seeds a default company and admin on an empty database
    bootstrap_admin_email: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    bootstrap_admin_password: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")

    scoring: ScoringSettings = ScoringSettings()
    business_todos: BusinessTodoSettings = BusinessTodoSettings()


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("Using insecure default SECRET_KEY; only acceptable in development.")
