# stepflow/core/config.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Server
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # CORS / hosts
    allowed_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000", validation_alias="ALLOWED_ORIGINS")
    allowed_methods: str = Field(default="GET,POST,PUT,PATCH,OPTIONS", validation_alias="ALLOWED_METHODS")
    allowed_headers: str = Field(default="*", validation_alias="ALLOWED_HEADERS")
    allowed_hosts: str = Field(default="*", validation_alias="ALLOWED_HOSTS")

    # Consultation endpoint
    consultation_endpoint_url: str = Field(
        default="http://localhost:3000/api/consultations",
        validation_alias="CONSULTATION_ENDPOINT_URL",
    )
    submission_timeout_seconds: int = Field(default=10, validation_alias="SUBMISSION_TIMEOUT_SECONDS")

    # Flow store
    flow_store_backend: str = Field(default="memory", validation_alias="FLOW_STORE_BACKEND")
    flow_ttl_seconds: int = Field(default=3600, validation_alias="FLOW_TTL_SECONDS")

    # Redis
    redis_url: str = Field(default="redis://redis:6379/0", validation_alias="REDIS_URL")
    redis_max_connections: int = Field(default=20, validation_alias="REDIS_MAX_CONNECTIONS")
    redis_socket_timeout: int = Field(default=5, validation_alias="REDIS_SOCKET_TIMEOUT")
    redis_socket_connect_timeout: int = Field(default=5, validation_alias="REDIS_SOCKET_CONNECT_TIMEOUT")

    # Static assets
    logo_path: str = Field(default="/logo.png", validation_alias="LOGO_PATH")
    completion_image_path: str = Field(default="/complete-check.png", validation_alias="COMPLETION_IMAGE_PATH")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("flow_store_backend")
    def validate_flow_store_backend(cls, v):
        valid_backends = ["memory", "redis"]
        if v not in valid_backends:
            raise ValueError(f"flow_store_backend must be one of {valid_backends}")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def origins(self) -> List[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def methods(self) -> List[str]:
        return [method.strip() for method in self.allowed_methods.split(",") if method.strip()]

    def hosts(self) -> List[str]:
        return [host.strip() for host in self.allowed_hosts.split(",") if host.strip()]


settings = Settings()
