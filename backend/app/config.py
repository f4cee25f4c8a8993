# backend/app/config.py

from pydantic import BaseModel, Field
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    # LLM config
    LLM_PROVIDER: str = Field(default=os.getenv("LLM_PROVIDER", "ollama"))
    LLM_API_KEY: str = Field(default=os.getenv("LLM_API_KEY", "ollama"))
    LLM_BASE_URL: str = Field(default=os.getenv("LLM_BASE_URL", "http://ollama:11434"))
    LLM_MODEL_NAME: str = Field(default=os.getenv("LLM_MODEL_NAME", "qwen3"))
    LLM_TEMPERATURE: float = Field(default=float(os.getenv("LLM_TEMPERATURE", "0.0")))
    # Request timeout in seconds for LiteLLM calls
    LLM_REQUEST_TIMEOUT: int = Field(default=int(os.getenv("LLM_REQUEST_TIMEOUT", "300")))

    # Warmup
    WARMUP_ENABLED: bool = Field(default=os.getenv("WARMUP_ENABLED", "true").lower() == "true")
    WARMUP_PROMPT: str = Field(default=os.getenv("WARMUP_PROMPT", "Warm up. Reply with OK."))

    # Celery/Redis
    REDIS_URL: str = Field(default=os.getenv("REDIS_URL", "redis://host.docker.internal:6379/0"))
    CELERY_SOFT_TIME_LIMIT: int = Field(default=int(os.getenv("CELERY_SOFT_TIME_LIMIT", "600")))
    CELERY_HARD_TIME_LIMIT: int = Field(default=int(os.getenv("CELERY_HARD_TIME_LIMIT", "660")))

    # Storage collaborators
    STORAGE_ROOT: str = Field(default=os.getenv("STORAGE_ROOT", "./data/files"))
    KV_BACKEND: str = Field(default=os.getenv("KV_BACKEND", "redis"))  # redis | memory
    KV_URL: str = Field(default=os.getenv("KV_URL", os.getenv("REDIS_URL", "redis://host.docker.internal:6379/1")))

    # Upload pipeline
    PERSIST_FAILURE_POLICY: str = Field(default=os.getenv("PERSIST_FAILURE_POLICY", "fatal"))  # fatal | retry
    PERSIST_MAX_ATTEMPTS: int = Field(default=int(os.getenv("PERSIST_MAX_ATTEMPTS", "3")))
    SINGLE_FLIGHT_SUBMISSIONS: bool = Field(default=os.getenv("SINGLE_FLIGHT_SUBMISSIONS", "true").lower() == "true")
    MAX_RESUME_SIZE_MB: int = Field(default=int(os.getenv("MAX_RESUME_SIZE_MB", "20")))
    PDF_IMAGE_DPI: int = Field(default=int(os.getenv("PDF_IMAGE_DPI", "144")))

    # Read side
    FEEDBACK_WAIT_SECONDS: float = Field(default=float(os.getenv("FEEDBACK_WAIT_SECONDS", "60")))
    FEEDBACK_POLL_INTERVAL: float = Field(default=float(os.getenv("FEEDBACK_POLL_INTERVAL", "2")))

    LOG_LEVEL: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    # Auth: comma separated bearer tokens, empty disables the check
    AUTH_TOKENS: str = Field(default=os.getenv("AUTH_TOKENS", ""))


    def full_model_id(self) -> str:
        """
        Return provider-prefixed model id for LiteLLM, e.g.:
        - 'ollama/qwen3'
        - 'openai/gpt-4o-mini'
        """
        provider = self.LLM_PROVIDER.strip().lower()
        if "/" in self.LLM_MODEL_NAME:
            return self.LLM_MODEL_NAME
        return f"{provider}/{self.LLM_MODEL_NAME}"

    def auth_tokens(self) -> List[str]:
        return [t.strip() for t in self.AUTH_TOKENS.split(",") if t.strip()]

    @property
    def max_resume_size_bytes(self) -> int:
        return self.MAX_RESUME_SIZE_MB * 1024 * 1024


settings = Settings()
