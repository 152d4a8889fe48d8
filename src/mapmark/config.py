"""mapmark configuration using pydantic-settings.

Hit radii, viewport limits, identifier rules and the remote collection
layout are read from the environment or a .env file.
"""

from typing import TypeGuard

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(Exception):
    """Raised when a setting needed by an operation has no value.

    Example:
        >>> Settings(_env_file=None).require_user_id()  # doctest: +ELLIPSIS
        Traceback (most recent call last):
        ...
        ConfigError: User id is missing. Add USER_ID to .env or export it...
    """

    def __init__(self, key_name: str, env_var: str) -> None:
        """Keep the missing key for callers that format their own hint.

        Args:
            key_name: Name shown to the user, e.g. "User id".
            env_var: Variable that supplies the value.
        """
        self.key_name = key_name
        self.env_var = env_var
        message = (
            f"{key_name} is missing. Add {env_var} to .env or export it "
            "in the environment."
        )
        super().__init__(message)


class Settings(BaseSettings):
    """mapmark settings; environment variables override .env values."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Identity stamped on remote documents (createdBy / lastUpdatedBy)
    USER_ID: str | None = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"

    # Hit testing (canvas pixels)
    POINT_HIT_RADIUS: float = 8.0
    SPOT_HIT_RADIUS: float = 10.0  # spots render larger than points
    WAYPOINT_HIT_RADIUS: float = 10.0
    VERTEX_HIT_RADIUS: float = 10.0
    AREA_LABEL_HIT_RADIUS: float = 20.0  # screen pixels, divided by zoom scale
    NEAREST_WAYPOINT_RADIUS: float = 50.0

    # Viewport
    MIN_SCALE: float = 1.0
    MAX_SCALE: float = 5.0
    ZOOM_STEP: float = 0.2
    PAN_STEP: int = 50

    # Identifiers
    SPOT_NAME_MAX_LENGTH: int = 10

    # Remote store
    PROJECTS_COLLECTION: str = "projects"
    POSITION_TOLERANCE: float = 1.0  # image pixels, for delete-by-position

    @staticmethod
    def _is_configured_secret(value: str | None) -> TypeGuard[str]:
        return value is not None and value.strip() != ""

    def require_user_id(self) -> str:
        """Get the user id, raising ConfigError if not set.

        Returns:
            The configured user id string.

        Raises:
            ConfigError: If USER_ID is not configured.
        """
        if not self._is_configured_secret(self.USER_ID):
            raise ConfigError("User id", "USER_ID")
        return self.USER_ID


# Singleton instance for import convenience
settings = Settings()
