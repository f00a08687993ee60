from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field  # type: ignore
from typing import Annotated


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LUNAR_")

    port: Annotated[int, Field(ge=1, le=65535)] = 8000
    cors_allow_origins: str = "*"
    # overrides map_modifiers.terrain_seed for every new session when set
    terrain_seed: int | str | None = None
    log_level: str = "INFO"
    max_sessions: Annotated[int, Field(ge=1)] = 256
