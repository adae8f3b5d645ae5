"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "storefront"

    # Full SQLAlchemy URL; takes precedence over the tidb_* fields.
    # e.g. sqlite+aiosqlite:///./storefront.db for local development
    database_url: Optional[str] = None
    database_echo: bool = False

    @property
    def tidb_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        return self.database_url or self.tidb_url

    # ── GraphQL ────────────────────────────────────────────────────────────
    graphql_path: str = "/graphql"
    graphiql_enabled: bool = True

    # ── Subscriptions ──────────────────────────────────────────────────────
    # Undelivered events a client may fall behind by before it is dropped
    subscriber_queue_size: int = 100

    # ── Observability ──────────────────────────────────────────────────────
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "storefront-api"
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
