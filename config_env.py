# Configuration from environment variables (.env locally, platform variables in deploys).

import os
from dotenv import load_dotenv

load_dotenv()


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_int(key: str, default: int) -> int:
    try:
        return int(_env(key, str(default)))
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    try:
        return float(_env(key, str(default)))
    except ValueError:
        return default


def _env_bool(key: str, default: bool = False) -> bool:
    return _env(key, "true" if default else "false").lower() in ("1", "true", "yes")


def _env_list(key: str, default: list = None) -> list:
    s = _env(key)
    if not s:
        return default or []
    return [x.strip() for x in s.strip("[]").split(",") if x.strip()]


# ============================================================================
# Application
# ============================================================================
APP_ENV = _env("APP_ENV", "production")
LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = _env_list("CORS_ORIGINS", ["*"])
SEED_SAMPLE_DATA = _env_bool("SEED_SAMPLE_DATA", False)

# ============================================================================
# Credentials
# ============================================================================
BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

# ============================================================================
# Notifications
# ============================================================================
NOTIFICATIONS_LIMIT = _env_int("NOTIFICATIONS_LIMIT", 20)

# ============================================================================
# Generative AI (OpenAI-compatible endpoint)
# ============================================================================
LLM_API_KEY = _env("LLM_API_KEY", _env("OPENAI_API_KEY"))
LLM_BASE_URL = _env("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL = _env("LLM_MODEL", "gpt-4o")
LLM_TIMEOUT_SECONDS = _env_float("LLM_TIMEOUT_SECONDS", 30.0)
LLM_TEMPERATURE = _env_float("LLM_TEMPERATURE", 0.4)
LLM_MAX_TOKENS = _env_int("LLM_MAX_TOKENS", 1500)

# Scale the model is asked to score on; results are always stored on 0-100.
AI_SCORE_SCALE = _env_int("AI_SCORE_SCALE", 100)


def is_development() -> bool:
    return APP_ENV.lower() in ("dev", "development", "local")
