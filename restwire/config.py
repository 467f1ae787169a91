# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import Any, ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ("AppSettings", "settings")


class AppSettings(BaseSettings, frozen=True):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="RESTWIRE_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    SERVER_URL: str | None = Field(
        default=None,
        description="Default server URL used when the builder is given none",
    )
    HTTP_TIMEOUT: float = Field(
        default=30.0, gt=0, description="Transport timeout in seconds"
    )
    HTTP_WORKERS: int = Field(
        default=4,
        ge=1,
        description="Worker threads of the default asynchronous executor",
    )
    LOG_CHUNK_SIZE: int = Field(
        default=4000,
        ge=1,
        description="Characters per line when logging response bodies",
    )

    # Class variable to store the singleton instance
    _instance: ClassVar[Any] = None


# Create a singleton instance
settings = AppSettings()
# Store the instance in the class variable for singleton pattern
AppSettings._instance = settings
