"""
Configuration management system using Pydantic Settings.
Supports environment-based configuration for different deployment environments.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional
from enum import Enum

from transit_assist.core.cache_keys import (
    AREA_PRECISION,
    DEFAULT_TTL,
    LOCATION_PRECISION,
    ROUTE_PLANS,
    TRANSIT_ARRIVALS,
    TRAVEL_RECOMMENDATIONS,
    USER_LOCATIONS,
    WAITING_SPOTS,
)


class Environment(str, Enum):
    """Supported deployment environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TransitProviderKind(str, Enum):
    """Available transit-data providers"""
    SCHEDULED = "scheduled"
    HTTP = "http"


class RedisSettings(BaseSettings):
    """Remote cache tier (Redis) configuration"""

    host: Optional[str] = Field(default=None, description="Redis host; unset disables the remote tier")
    port: int = Field(default=6379, ge=1, le=65535)
    password: Optional[str] = Field(default=None)
    db: int = Field(default=0, ge=0, le=15)
    socket_timeout: float = Field(default=5.0, gt=0, le=30)
    connect_timeout: float = Field(default=5.0, gt=0, le=30)
    max_retries: int = Field(default=3, ge=0, le=10)

    @property
    def url(self) -> Optional[str]:
        """Generate Redis URL from configuration, None when no host is set"""
        if not self.host or self.host == "placeholder":
            return None
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"

    model_config = {"env_prefix": "REDIS_", "extra": "ignore"}


class CacheSettings(BaseSettings):
    """Two-tier cache configuration"""

    sweep_interval_seconds: int = Field(default=300, ge=1, le=86400)
    default_ttl_seconds: int = Field(default=300, ge=1, le=86400)
    remote_timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    single_flight: bool = Field(default=False, description="Share in-flight get_or_set computations per key")

    # Namespace TTLs
    transit_arrivals_ttl_seconds: int = Field(default=DEFAULT_TTL[TRANSIT_ARRIVALS], ge=1)
    recommendations_ttl_seconds: int = Field(default=DEFAULT_TTL[TRAVEL_RECOMMENDATIONS], ge=1)
    route_plans_ttl_seconds: int = Field(default=DEFAULT_TTL[ROUTE_PLANS], ge=1)
    waiting_spots_ttl_seconds: int = Field(default=DEFAULT_TTL[WAITING_SPOTS], ge=1)
    user_locations_ttl_seconds: int = Field(default=DEFAULT_TTL[USER_LOCATIONS], ge=1)

    # Location hash precision (decimal places)
    location_precision: int = Field(default=LOCATION_PRECISION, ge=0, le=8)
    area_precision: int = Field(default=AREA_PRECISION, ge=0, le=8)

    cleanup_interval_seconds: int = Field(default=600, ge=1, le=86400)

    model_config = {"env_prefix": "CACHE_", "extra": "ignore"}


class RecommendationSettings(BaseSettings):
    """Recommendation engine tuning"""

    refresh_interval_seconds: float = Field(default=30.0, gt=0, le=3600)
    relevance_max_angle_degrees: float = Field(
        default=108.0, gt=0.0, le=180.0,
        description="Options whose heading differs from the user by this much or more are dropped"
    )
    score_tie_tolerance: float = Field(default=0.1, ge=0.0, le=1.0)
    heading_tolerance_degrees: float = Field(
        default=45.0, ge=0.0, le=180.0,
        description="Tolerance used by is_heading_towards; independent of relevance_max_angle_degrees"
    )
    train_speed_kmh: float = Field(default=60.0, gt=0)
    bus_speed_kmh: float = Field(default=25.0, gt=0)
    boarding_overhead_minutes: float = Field(default=5.0, ge=0)

    model_config = {"env_prefix": "RECOMMENDATION_", "extra": "ignore"}


class PresenceSettings(BaseSettings):
    """Geofence / presence tracking configuration"""

    default_radius_meters: float = Field(default=50.0, gt=0)
    magnetometer_available: bool = Field(default=True)

    model_config = {"env_prefix": "PRESENCE_", "extra": "ignore"}


class TransitSettings(BaseSettings):
    """Transit-data collaborator configuration"""

    provider: TransitProviderKind = Field(default=TransitProviderKind.SCHEDULED)
    api_url: str = Field(default="https://api.njtransit.com/")
    api_key: Optional[str] = Field(default=None)
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    arrivals_per_line: int = Field(default=3, ge=1, le=20)
    headway_minutes: int = Field(default=10, ge=1, le=180)

    model_config = {"env_prefix": "TRANSIT_", "extra": "ignore"}


class Settings(BaseSettings):
    """Main application settings"""

    # Application Configuration
    app_name: str = Field(default="Transit Assist")
    app_version: str = Field(default="1.0.0")
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)
    workers: int = Field(default=1, ge=1, le=16)

    # Logging Configuration
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_json: bool = Field(default=True, description="JSON log lines; plain log_format when false")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    log_file: Optional[str] = Field(default=None)

    # Nested Settings
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    recommendations: RecommendationSettings = Field(default_factory=RecommendationSettings)
    presence: PresenceSettings = Field(default_factory=PresenceSettings)
    transit: TransitSettings = Field(default_factory=TransitSettings)

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment setting"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance"""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and files"""
    global settings
    settings = Settings()
    return settings
