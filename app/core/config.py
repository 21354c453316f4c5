from typing import Any, List, Optional

from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class _CommaSeparatedOrigins:
    """Accept CORS_ORIGINS as ``a,b`` as well as a JSON list."""

    def prepare_field_value(self, field_name: str, field: FieldInfo, value: Any, value_is_complex: bool) -> Any:
        if field_name == "cors_origins" and isinstance(value, str) and not value.lstrip().startswith("["):
            return [v.strip() for v in value.split(",") if v.strip()]
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class _EnvSource(_CommaSeparatedOrigins, EnvSettingsSource):
    pass


class _DotEnvSource(_CommaSeparatedOrigins, DotEnvSettingsSource):
    pass


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env.production", ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Database
    database_url: Optional[str] = None
    postgres_host: Optional[str] = None
    postgres_port: Optional[int] = None
    postgres_user: Optional[str] = None
    postgres_password: Optional[str] = None
    postgres_db: Optional[str] = None
    postgres_ssl: Optional[bool] = True
    cloud_sql_connection_name: Optional[str] = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout: float = 30

    # Firebase
    fb_project_id: Optional[str] = None
    fb_client_email: Optional[str] = None
    fb_private_key: Optional[str] = None

    # CORS
    cors_origins: List[str] = ["*"]

    # Documents and share tokens
    uploads_dir: str = "public"
    token_generation_attempts: int = 5

    def build_db_url(self) -> Optional[str]:
        if self.database_url:
            return self.database_url

        if not self.postgres_db:
            return None

        user = self.postgres_user or ""
        password = self.postgres_password or ""

        # Cloud SQL over the unix socket: postgresql://user:password@/database?host=/cloudsql/connection_name
        if self.cloud_sql_connection_name:
            host_path = f"/cloudsql/{self.cloud_sql_connection_name}"
            return f"postgresql://{user}:{password}@/{self.postgres_db}?host={host_path}"

        host = self.postgres_host or "127.0.0.1"
        port = self.postgres_port or 5432
        return f"postgresql://{user}:{password}@{host}:{port}/{self.postgres_db}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            _EnvSource(settings_cls),
            _DotEnvSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
