import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _read_openai_key_from_file() -> str | None:
    path = os.getenv("OPENAI_API_KEY_FILE", "/run/secrets/openai_api_key")
    try:
        if path and os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as f:
                return f.read().strip()
    except OSError:
        pass
    return None


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


_ENV_OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_API_KEY = (
    (_ENV_OPENAI_API_KEY.strip() if _ENV_OPENAI_API_KEY else None)
    or _read_openai_key_from_file()
    or ""
)

# Only accept explicit numeric '1' for stub mode (avoid accidental 'True' string from host env)
_raw_dev_no_llm = os.getenv("DEV_ALLOW_NO_LLM", "0")
DEV_ALLOW_NO_LLM = True if _raw_dev_no_llm == "1" else False


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./smartbudget.db"
    ENV: str = os.getenv("ENV", "dev")  # dev | test | prod
    DEBUG: bool = _env_bool("DEBUG", True)
    LOG_LEVEL: str = "INFO"

    # LLM (any OpenAI-compatible chat completions endpoint)
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_API_KEY: str = OPENAI_API_KEY  # empty or "mock" -> completion unavailable
    DEFAULT_LLM_MODEL: str = "gpt-4o-mini"
    DEV_ALLOW_NO_LLM: bool = DEV_ALLOW_NO_LLM
    LLM_CONNECT_TIMEOUT: float = 10.0
    LLM_READ_TIMEOUT: float = 45.0
    LLM_MAX_TOKENS: int = 1000

    # Domain defaults
    CURRENCY: str = "CHF"  # display unit only, amounts are never converted
    SECONDARY_LANGUAGE: str = "DE"  # cached translations target this language
    DEMO_USER_ID: str = "demoUser"
    DEFAULT_MONTHLY_NET_INCOME: float = 5000.0
    FLEXIBLE_SHARE: float = 0.6  # share of net income available for flexible spending
    DEFAULT_GOAL_DAYS: int = 180

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
