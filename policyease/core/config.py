from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from policyease.agent.schemas.requests import OutputLanguage

# Keys under which shared objects live on `app.state`
CONFIG_ANALYSIS_SERVICE = "analysis_service"
CONFIG_SESSION_REPOSITORY = "session_repository"


def parse_comma_list(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def get_env_file_path() -> str | None:
    """
    Returns the file path to the .env file.

    Returns:
        str | None: The file path to the .env file or None if not found.
    """

    possible_paths = [
        ".env",
    ]

    for path in possible_paths:
        if Path(path).exists():
            abs_path = Path(path).resolve()
            return str(abs_path)

    return None


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=get_env_file_path(),
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "PolicyEase"
    ENVIRONMENT: Literal["development", "test", "production"] = "development"

    # Generation capability
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-5-mini"
    OPENAI_TIMEOUT_SECONDS: float = 120.0
    OPENAI_TRACING_DISABLED: bool = True

    # Analysis defaults
    DEFAULT_LANGUAGE: OutputLanguage = OutputLanguage.ZH
    PREFERRED_SOURCE_DOMAINS: Annotated[list[str] | str, BeforeValidator(parse_comma_list)] = [
        "gov.cn"
    ]

    # Upload limits (pdf / txt / md, checked before a document reaches the composer)
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # In-memory analysis sessions
    MAX_SESSIONS: int = 1000
    SESSION_IDLE_TTL_SECONDS: float = 3600.0

    # Frontend Configuration
    FRONTEND_HOST: str = "http://localhost:3000"

    BACKEND_CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(parse_comma_list)] = (
        []
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        """
        Dynamically calculates CORS origins by combining backend CORS origins with the frontend host.

        Example Input:
        - BACKEND_CORS_ORIGINS = ["http://localhost:8000/", "https://api.myapp.com"]
        - FRONTEND_HOST = "http://localhost:3000"

        Result: ["http://localhost:8000", "https://api.myapp.com", "http://localhost:3000"]
        """
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    def public_view(self) -> dict:
        """Settings that are safe to expose over HTTP (no credentials)."""
        return {
            "project_name": self.PROJECT_NAME,
            "environment": self.ENVIRONMENT,
            "model": self.OPENAI_MODEL,
            "default_language": self.DEFAULT_LANGUAGE.value,
            "preferred_source_domains": list(self.PREFERRED_SOURCE_DOMAINS),
            "max_upload_bytes": self.MAX_UPLOAD_BYTES,
            "credential_configured": bool(self.OPENAI_API_KEY),
        }


@lru_cache  # builds once, the first time it's asked for
def get_settings() -> Settings:
    return Settings()
