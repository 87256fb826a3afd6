"""Environment-driven settings.

Values come from ``WORTELS_*`` environment variables or a ``.env`` file in
the working directory. Command line options always win over these.

Examples
--------
Keep the cache somewhere else and hash with the ``shasum`` tool::

    export WORTELS_HOME=/var/cache/wortels
    export WORTELS_FINGERPRINT_TOOL=shasum
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wortels.models.backends import FingerprintTool
from wortels.models.config import default_app_data_dir, default_fingerprint_workers


class WortelsSettings(BaseSettings):
    """Machine-level defaults for every run."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WORTELS_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application data: cache/ and compiler-latest/compiler.jar live here
    home: Path = Field(default_factory=default_app_data_dir)
    log_level: str = "WARNING"

    # Overrides <home>/compiler-latest/compiler.jar
    closure_jar: Path | None = None

    fingerprint_tool: FingerprintTool = FingerprintTool.HASHLIB
    fingerprint_workers: int = Field(default_factory=default_fingerprint_workers, ge=1)
