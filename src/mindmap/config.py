"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage backend
    store_backend: Literal["neo4j", "memory"] = Field(
        default="neo4j",
        description="'neo4j' for the graph database, 'memory' for a process-local store"
    )

    # Neo4j Configuration
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "mindmap_password"
    neo4j_database: str = "neo4j"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 18804
    api_debug: bool = False
    log_level: str = "INFO"

    # Ingestion
    sync_key: str = Field(
        default="mindmap-sync-key-change-me",
        description="Shared secret expected in the X-Sync-Key header"
    )

    # Queries
    max_expansion_depth: int = Field(
        default=3,
        description="Upper bound for neighbor expansion hops"
    )
    search_limit: int = 50
    default_graph_id: str = "mind"

    # Client (view session, sync job)
    api_base_url: str = "http://127.0.0.1:18804"

    # Sync job
    sync_source_url: str = "http://127.0.0.1:8765"
    sync_include_prefixes: list[str] = Field(default_factory=lambda: ["mind", "thought-"])
    sync_exclude_prefixes: list[str] = Field(
        default_factory=lambda: ["social-", "trading", "encounter-"]
    )

    # View loop
    tick_interval: float = Field(
        default=1 / 60,
        description="Seconds between simulation ticks"
    )
    fit_delay: float = Field(
        default=0.5,
        description="Delay before the initial zoom-to-fit, lets early ticks run"
    )
    layout_max_ticks: int = Field(
        default=600,
        description="Tick budget for the server-side layout endpoint"
    )
    layout_width: float = 1200.0
    layout_height: float = 800.0


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(
        store_backend="memory",
        api_debug=True,
        log_level="DEBUG",
    )


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        store_backend="memory",
        neo4j_database="neo4j_test",
        sync_key="test-sync-key",
        tick_interval=0.001,
        fit_delay=0.0,
    )


# Global settings instance
settings = Settings()
