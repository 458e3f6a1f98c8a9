"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class VerificationConfig(BaseSettings):
    """One-time verification code configuration."""

    model_config = {"env_prefix": "COHORT_VERIFICATION_"}

    code_ttl_minutes: int = 10
    # None means "expose only in development".
    expose_codes: bool | None = None


class DatabaseConfig(BaseSettings):
    """Database configuration. Without a URL the in-memory store is used."""

    model_config = {"env_prefix": "COHORT_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5
    create_tables: bool = True


class AuditConfig(BaseSettings):
    """Audit logging configuration."""

    model_config = {"env_prefix": "COHORT_AUDIT_"}

    log_dir: str = "data/audit"
    hash_algorithm: str = "sha256"


class WizardConfig(BaseSettings):
    """Registration wizard configuration."""

    model_config = {"env_prefix": "COHORT_WIZARD_"}

    wizards_dir: str | None = None
    locations_path: str | None = None
    registration_wizard: str = "trainee_registration"


class HousingConfig(BaseSettings):
    """Hostel room allocation configuration."""

    model_config = {"env_prefix": "COHORT_HOUSING_"}

    room_capacity: int = 2
    tag_number_width: int = 3


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "COHORT_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    verification: VerificationConfig = Field(default_factory=VerificationConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)
    housing: HousingConfig = Field(default_factory=HousingConfig)

    @model_validator(mode="after")
    def _forbid_code_exposure_in_production(self) -> Settings:
        if self.is_production and self.verification.expose_codes:
            raise ValueError(
                "COHORT_VERIFICATION_EXPOSE_CODES must not be enabled "
                "when COHORT_ENVIRONMENT is 'production'."
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def expose_verification_codes(self) -> bool:
        """Whether verification responses may carry the generated code."""
        if self.is_production:
            return False
        if self.verification.expose_codes is None:
            return self.environment.strip().lower() == "development"
        return self.verification.expose_codes
