from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional
import os

class Settings(BaseSettings):
    # LLM providers
    llm_provider: str = "anthropic"  # anthropic | openai
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-haiku-20240307"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Supabase (auth + rows)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_jwt_secret: str = ""
    session_cookie_name: str = "platanus-hack-session-access-token"

    # Database - Railway/Supabase provide DATABASE_URL, fallback to SQLite for local
    database_url: Optional[str] = None

    # Optional Redis (rate limiting + search cache)
    redis_url: str = ""

    # App Settings
    app_name: str = "CaminoAI"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    # API Settings
    backend_host: str = "0.0.0.0"
    backend_port: int = int(os.getenv("PORT", "8000"))

    class Config:
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        db_url = self.database_url or os.getenv("DATABASE_URL")
        if not db_url:
            self.database_url = "sqlite+aiosqlite:///./camino_ai.db"
        # SQLAlchemy async needs postgresql+asyncpg://
        elif db_url.startswith("postgres://"):
            self.database_url = db_url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif db_url.startswith("postgresql://"):
            self.database_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        else:
            self.database_url = db_url

    def missing_required(self) -> List[str]:
        """Names of required environment variables that are not set"""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing

    def configuration_warnings(self) -> List[str]:
        warnings = []
        if self.llm_provider == "openai":
            if not self.openai_api_key:
                warnings.append("OPENAI_API_KEY is not set - AI pathway analysis will not work")
        elif not self.anthropic_api_key:
            warnings.append("ANTHROPIC_API_KEY is not set - AI pathway analysis will not work")
        if not self.supabase_jwt_secret:
            warnings.append("SUPABASE_JWT_SECRET is not set - only ES256 session tokens can be verified")
        return warnings

@lru_cache()
def get_settings() -> Settings:
    return Settings()
