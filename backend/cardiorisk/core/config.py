"""Engine configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from cardiorisk.schemas.risk import AlgorithmConfig


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CARDIORISK_",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Cardiovascular Risk Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Algorithm defaults
    default_algorithm: str = "PREVENT"
    enable_comparison: bool = True
    show_citations: bool = True
    enable_interventions: bool = True

    def algorithm_config(self) -> AlgorithmConfig:
        """Build the default factory configuration from these settings."""
        return AlgorithmConfig(
            algorithm=self.default_algorithm,
            enable_comparison=self.enable_comparison,
            show_citations=self.show_citations,
            enable_interventions=self.enable_interventions,
        )


settings = Settings()
