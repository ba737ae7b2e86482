"""Process configuration, read once from the environment at startup."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

DEFAULT_API_URL = "https://api.bitbucket.org/2.0"
DEFAULT_QUEUE_CAPACITY = 100


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 5000
    token: str = ""
    bitbucket_username: str = ""
    bitbucket_password: str = ""
    bitbucket_api_url: str = DEFAULT_API_URL
    work_dir: str = tempfile.gettempdir()
    git_author_name: str = "Cascade Merge"
    git_author_email: str = "cascade-merge@localhost"
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    log_level: str = "info"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            host=env.get("HOST", defaults.host),
            port=int(env.get("PORT", defaults.port)),
            token=env.get("TOKEN", defaults.token),
            bitbucket_username=env.get("BITBUCKET_USERNAME", ""),
            bitbucket_password=env.get("BITBUCKET_PASSWORD", ""),
            bitbucket_api_url=env.get("BITBUCKET_API_URL", defaults.bitbucket_api_url),
            work_dir=env.get("CASCADE_WORK_DIR", defaults.work_dir),
            git_author_name=env.get("GIT_AUTHOR_NAME", defaults.git_author_name),
            git_author_email=env.get("GIT_AUTHOR_EMAIL", defaults.git_author_email),
            queue_capacity=int(env.get("QUEUE_CAPACITY", defaults.queue_capacity)),
            log_level=env.get("LOG_LEVEL", defaults.log_level).lower(),
        )
