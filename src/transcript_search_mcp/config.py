"""Configuration via environment variables."""

from enum import Enum

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class Mode(str, Enum):
    MEMORY = "memory"
    BACKEND = "backend"


class Transport(str, Enum):
    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable-http"


class SearchOptions(BaseModel):
    """Tunables for scoring and aggregation."""

    min_query_length: int = Field(default=2, ge=1)
    context_window: int = Field(default=5, ge=0)
    text_context_chars: int = Field(default=100, ge=0)
    max_matches_per_file: int = Field(default=10, ge=1)
    default_page_size: int = Field(default=10, ge=1)
    filename_discount: float = Field(default=0.7, ge=0.0, le=1.0)
    fulltext_exact_case_score: float = Field(default=1.0, ge=0.0, le=1.0)
    fulltext_other_score: float = Field(default=0.8, ge=0.0, le=1.0)


class Settings(BaseSettings):
    model_config = {"env_prefix": "TS_MCP_"}

    mode: Mode = Mode.MEMORY
    backend_url: str = "http://localhost:8300"
    backend_api_key: str = ""
    corpus_path: str = ""
    cache_max_size: int = 100
    cache_ttl_seconds: int = 300
    rate_limit_per_minute: int = 30
    transport: Transport = Transport.STDIO

    # Search engine tunables
    min_query_length: int = 2
    context_window: int = 5
    text_context_chars: int = 100
    max_matches_per_file: int = 10
    default_page_size: int = 10
    filename_discount: float = 0.7
    fulltext_exact_case_score: float = 1.0
    fulltext_other_score: float = 0.8

    def search_options(self) -> SearchOptions:
        return SearchOptions(
            **{name: getattr(self, name) for name in SearchOptions.model_fields}
        )
