import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from deep_truth.domain.errors import InvalidInput
from deep_truth.domain.models import Mode

load_dotenv()

# Model provider: "ollama" (local) or "gemini" (remote)
PROVIDERS = ("ollama", "gemini")

# Ollama Configuration
OLLAMA_BASE_URL = "http://127.0.0.1:11434"
OLLAMA_MODEL = "llama3.2"  # llama3.2, deepseek-r1:8b
OLLAMA_TEMPERATURE = 0.0
OLLAMA_NUM_PREDICT = 5500

# Gemini Configuration (set GOOGLE_API_KEY in .env)
GEMINI_MODEL = "gemini-2.0-flash"

# Output directory
OUTPUT_DIR = "./outputs"


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise InvalidInput(f"{key} must be true or false, got {raw!r}")


def _env_number(key: str, default, cast):
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise InvalidInput(f"{key} must be a number, got {raw!r}") from exc


@dataclass
class Settings:
    """Everything a run needs besides the articles themselves."""

    user_query: Optional[str] = None
    provider: str = "ollama"
    ollama_host: str = OLLAMA_BASE_URL
    ollama_model: str = OLLAMA_MODEL
    ollama_temperature: float = OLLAMA_TEMPERATURE
    ollama_num_predict: int = OLLAMA_NUM_PREDICT
    gemini_model: str = GEMINI_MODEL
    gemini_api_key: Optional[str] = None
    output_dir: str = OUTPUT_DIR
    continue_from_article: bool = True
    mode: Mode = Mode.JSON
    max_attempts: int = 3
    retry_delay: float = 5.0
    keep_empty_results: bool = False
    on_extraction_error: str = "abort"
    log_level: str = "INFO"

    def __post_init__(self):
        self.provider = (self.provider or "").strip().lower()
        if self.provider not in PROVIDERS:
            raise InvalidInput(f"Unknown model provider {self.provider!r}; expected one of {', '.join(PROVIDERS)}")
        try:
            self.mode = Mode(self.mode)
        except ValueError as exc:
            raise InvalidInput(f"Unknown mode {self.mode!r}; expected json or text") from exc
        if self.on_extraction_error not in ("abort", "skip"):
            raise InvalidInput(f"on_extraction_error must be abort or skip, got {self.on_extraction_error!r}")
        if self.max_attempts < 1:
            raise InvalidInput("max_attempts must be at least 1")
        if self.retry_delay < 0:
            raise InvalidInput("retry_delay cannot be negative")

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Read DEEP_TRUTH_* / OLLAMA_* / GEMINI_* variables (after .env); overrides win when not None."""
        values = dict(
            user_query=os.getenv("DEEP_TRUTH_QUERY") or None,
            provider=os.getenv("DEEP_TRUTH_PROVIDER", "ollama"),
            ollama_host=os.getenv("OLLAMA_BASE_URL", OLLAMA_BASE_URL),
            ollama_model=os.getenv("OLLAMA_MODEL", OLLAMA_MODEL),
            ollama_temperature=_env_number("OLLAMA_TEMPERATURE", OLLAMA_TEMPERATURE, float),
            ollama_num_predict=_env_number("OLLAMA_NUM_PREDICT", OLLAMA_NUM_PREDICT, int),
            gemini_model=os.getenv("GEMINI_MODEL", GEMINI_MODEL),
            gemini_api_key=os.getenv("GOOGLE_API_KEY") or None,
            output_dir=os.getenv("DEEP_TRUTH_OUTPUT_DIR", OUTPUT_DIR),
            continue_from_article=_env_bool("DEEP_TRUTH_CONTINUE", True),
            mode=os.getenv("DEEP_TRUTH_MODE", Mode.JSON.value).strip().lower(),
            max_attempts=_env_number("DEEP_TRUTH_MAX_ATTEMPTS", 3, int),
            retry_delay=_env_number("DEEP_TRUTH_RETRY_DELAY", 5.0, float),
            keep_empty_results=_env_bool("DEEP_TRUTH_KEEP_EMPTY", False),
            on_extraction_error=os.getenv("DEEP_TRUTH_ON_EXTRACTION_ERROR", "abort").strip().lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
