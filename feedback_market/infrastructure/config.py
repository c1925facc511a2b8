"""Service configuration loaded from the environment."""

import logging
import os
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ..domain.services.reinforcement_engine import ReinforcementPolicy
from .orchestration.retry import RetryConfig

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Configuration for the feedback market service."""

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"

    search_provider: str = Field(default="hosted", description="'hosted' or 'embedding'")
    search_base_url: str = "http://localhost:8787"
    search_api_key: str = ""
    search_limit: int = 3

    claim_store: str = Field(default="memory", description="'memory' or 'sqlite'")
    step_runner: str = Field(default="memory", description="'memory' or 'sqlite'")
    database_path: str = "feedback_market.db"

    similarity_threshold: float = 0.75
    weight_delta: int = 5
    staleness_days: float = 14.0
    diminishing_returns: bool = False

    step_timeout: float = 30.0
    step_max_attempts: int = 3
    step_backoff: float = 0.5

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Create settings from environment variables (and a .env file if present)."""
        load_dotenv(env_file)

        settings = cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_embedding_model=os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
            search_provider=os.getenv("SEARCH_PROVIDER", "hosted").lower(),
            search_base_url=os.getenv("SEARCH_BASE_URL", "http://localhost:8787"),
            search_api_key=os.getenv("SEARCH_API_KEY", ""),
            search_limit=int(os.getenv("SEARCH_LIMIT", "3")),
            claim_store=os.getenv("CLAIM_STORE", "memory").lower(),
            step_runner=os.getenv("STEP_RUNNER", "memory").lower(),
            database_path=os.getenv("DATABASE_PATH", "feedback_market.db"),
            similarity_threshold=float(os.getenv("SIMILARITY_THRESHOLD", "0.75")),
            weight_delta=int(os.getenv("WEIGHT_DELTA", "5")),
            staleness_days=float(os.getenv("STALENESS_DAYS", "14")),
            diminishing_returns=os.getenv("DIMINISHING_RETURNS", "false").lower() == "true",
            step_timeout=float(os.getenv("STEP_TIMEOUT", "30")),
            step_max_attempts=int(os.getenv("STEP_MAX_ATTEMPTS", "3")),
            step_backoff=float(os.getenv("STEP_BACKOFF", "0.5")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

        if not settings.openai_api_key:
            logger.warning("⚠️ OPENAI_API_KEY not found in environment variables")
        return settings

    def reinforcement_policy(self) -> ReinforcementPolicy:
        return ReinforcementPolicy(
            similarity_threshold=self.similarity_threshold,
            weight_delta=self.weight_delta,
            staleness_window=timedelta(days=self.staleness_days),
            diminishing_returns=self.diminishing_returns,
        )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            timeout=self.step_timeout,
            max_attempts=self.step_max_attempts,
            backoff=self.step_backoff,
        )
