"""
Configuration loader utility for environment-specific settings.
"""

import logging
import os
from pathlib import Path
from typing import Optional
from .settings import (
    CacheSettings,
    Environment,
    PresenceSettings,
    RecommendationSettings,
    RedisSettings,
    Settings,
    TransitSettings,
)

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Utility class for loading environment-specific configurations"""

    @staticmethod
    def load_environment_config(environment: Optional[str] = None) -> Settings:
        """
        Load configuration for the specified environment.

        Args:
            environment: Target environment (development, staging, production, testing)
                        If None, uses ENVIRONMENT env var or defaults to development

        Returns:
            Settings instance with environment-specific configuration
        """
        if environment is None:
            environment = os.getenv("ENVIRONMENT", "development")

        env = Environment(environment.lower())
        env_file_path = Path(f".env.{env.value}")
        if not env_file_path.exists():
            logger.info(f"Environment file {env_file_path} not found, using defaults and process environment")

        # Later files win; the nested groups read the same files
        env_files = tuple(str(path) for path in (Path(".env"), env_file_path) if path.exists()) or None

        return Settings(
            _env_file=env_files,
            environment=env,
            redis=RedisSettings(_env_file=env_files),
            cache=CacheSettings(_env_file=env_files),
            recommendations=RecommendationSettings(_env_file=env_files),
            presence=PresenceSettings(_env_file=env_files),
            transit=TransitSettings(_env_file=env_files),
        )

    @staticmethod
    def get_available_environments() -> list[str]:
        """Get list of available environment configurations"""
        env_files = []
        for env_file in Path(".").glob(".env.*"):
            env_name = env_file.name.replace(".env.", "")
            if env_name in {e.value for e in Environment}:
                env_files.append(env_name)
        return sorted(env_files)

    @staticmethod
    def create_sample_env_file(environment: str, output_path: Optional[str] = None) -> str:
        """
        Create a sample .env file for the specified environment.

        Args:
            environment: Target environment
            output_path: Optional custom output path

        Returns:
            Path to the created sample file
        """
        env = Environment(environment.lower())

        if output_path is None:
            output_path = f".env.{env.value}.sample"

        defaults = Settings()

        sample_content = f"""# Sample configuration for {env.value} environment
# Copy this file to .env.{env.value} and modify as needed

APP_NAME={defaults.app_name}
ENVIRONMENT={env.value}
DEBUG={'true' if env == Environment.DEVELOPMENT else 'false'}
HOST={defaults.host}
PORT={defaults.port}
LOG_LEVEL={defaults.log_level.value}
LOG_JSON=true

# Remote cache tier (leave REDIS_HOST empty for local-only caching)
REDIS_HOST=
REDIS_PORT={defaults.redis.port}
REDIS_DB={defaults.redis.db}
REDIS_SOCKET_TIMEOUT={defaults.redis.socket_timeout}

# Cache
CACHE_SWEEP_INTERVAL_SECONDS={defaults.cache.sweep_interval_seconds}
CACHE_DEFAULT_TTL_SECONDS={defaults.cache.default_ttl_seconds}
CACHE_SINGLE_FLIGHT={str(defaults.cache.single_flight).lower()}

# Recommendations
RECOMMENDATION_REFRESH_INTERVAL_SECONDS={defaults.recommendations.refresh_interval_seconds}
RECOMMENDATION_RELEVANCE_MAX_ANGLE_DEGREES={defaults.recommendations.relevance_max_angle_degrees}
RECOMMENDATION_HEADING_TOLERANCE_DEGREES={defaults.recommendations.heading_tolerance_degrees}

# Transit data
TRANSIT_PROVIDER={defaults.transit.provider.value}
TRANSIT_API_URL={defaults.transit.api_url}
TRANSIT_API_KEY=your-transit-api-key
"""

        with open(output_path, "w") as f:
            f.write(sample_content)

        return output_path


def load_config_for_environment(environment: Optional[str] = None) -> Settings:
    """Convenience function to load configuration for an environment"""
    return ConfigLoader.load_environment_config(environment)
