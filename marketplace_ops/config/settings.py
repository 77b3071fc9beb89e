from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

from marketplace_ops.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    # Supabase (the VITE_* names are the ones the web app's .env already carries)
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL"),
    )
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_KEY", "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY"),
    )  # Required for auth admin operations and cohort deletion

    # SQL function exposed by the project for raw statements
    sql_rpc_function: str = "exec_sql"
    archive_rpc_function: str = "archive_service"

    # Maintenance defaults
    default_fallback_business_name: Optional[str] = None
    orphan_scan_limit: int = 20
    cohort_profile_delay_seconds: float = 0.5
    cohort_identity_delay_seconds: float = 1.0
    statement_delay_seconds: float = 0.5
    deletion_confirmation_token: str = "YES"

    # App
    app_name: str = "marketplace-ops"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def require_connection(self, privileged: bool = False) -> None:
        """Fail fast when the variables needed for a client are missing."""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL (or VITE_SUPABASE_URL)")
        if privileged:
            if not self.supabase_service_role_key:
                missing.append("SUPABASE_SERVICE_ROLE_KEY")
        elif not self.supabase_key:
            missing.append("SUPABASE_KEY (or VITE_SUPABASE_ANON_KEY)")
        if missing:
            raise ConfigurationError(
                f"Missing Supabase configuration: {', '.join(missing)}"
            )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
