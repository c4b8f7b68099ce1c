"""Configuration management for the signal scoring core."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    
    # Engine weights
    weight_tolerance: float = Field(default=0.01, description="Allowed deviation of the weight sum from 1.0")
    sentiment_weight: float = Field(default=0.35, description="Default sentiment engine weight")
    trend_weight: float = Field(default=0.25, description="Default trend engine weight")
    fundamental_weight: float = Field(default=0.15, description="Default fundamental engine weight")
    event_risk_weight: float = Field(default=0.15, description="Default event risk engine weight")
    liquidity_weight: float = Field(default=0.10, description="Default liquidity engine weight")
    
    # Rule defaults
    default_entry_threshold: float = Field(default=0.5, description="Entry rule value of a new strategy")
    default_exit_threshold: float = Field(default=-0.3, description="Exit rule value of a new strategy")
    new_entry_rule_threshold: float = Field(default=0.3, description="Value of an added entry rule")
    new_exit_rule_threshold: float = Field(default=-0.3, description="Value of an added exit rule")
    
    # Insight settings
    sparkline_length: int = Field(default=20, description="Number of sparkline points")
    sparkline_base: float = Field(default=50.0, description="Sparkline starting level")
    sparkline_noise: float = Field(default=5.0, description="Max absolute noise per sparkline point")
    
    def default_weights(self) -> dict[str, float]:
        """Return the default engine weights keyed by engine name."""
        return {
            'sentiment': self.sentiment_weight,
            'trend': self.trend_weight,
            'fundamental': self.fundamental_weight,
            'event_risk': self.event_risk_weight,
            'liquidity': self.liquidity_weight,
        }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
