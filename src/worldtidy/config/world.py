"""Connection settings for the wikibase.world instance."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

DEFAULT_WORLD_INSTANCE: Final[str] = "https://wikibase.world"
DEFAULT_MAXLAG_SECONDS: Final[int] = 30


def _default_world_resilience() -> ResilienceConfig:
    return ResilienceConfig(name="wikibase.world")


@dataclass(frozen=True, slots=True)
class WorldConfig:
    """Holds the world instance endpoints and bot credentials."""

    instance: str = DEFAULT_WORLD_INSTANCE
    username: str | None = None
    password: str | None = None
    maxlag: int = DEFAULT_MAXLAG_SECONDS
    resilience: ResilienceConfig = field(default_factory=_default_world_resilience)

    @property
    def action_api(self) -> str:
        return f"{self.instance.rstrip('/')}/w/api.php"

    @property
    def sparql_endpoint(self) -> str:
        return f"{self.instance.rstrip('/')}/query/sparql"

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


def get_world_config(*, require_credentials: bool = True) -> WorldConfig:
    """Load the world configuration from the environment.

    Credentials are mandatory for any run that edits; read-only (dry) runs may
    skip them.
    """

    instance = os.getenv("WORLD_INSTANCE") or DEFAULT_WORLD_INSTANCE
    if not require_credentials:
        return WorldConfig(
            instance=instance,
            username=os.getenv("WORLD_USERNAME") or None,
            password=os.getenv("WORLD_PASSWORD") or None,
        )
    values = require_env_vars(("WORLD_USERNAME", "WORLD_PASSWORD"))
    return WorldConfig(
        instance=instance,
        username=values["WORLD_USERNAME"],
        password=values["WORLD_PASSWORD"],
    )


def external_api_resilience(name: str) -> ResilienceConfig:
    """Resilience settings for third-party wikis probed during a run (cached)."""

    return ResilienceConfig(name=name, ratelimit=RateLimit(max_calls=10, per_seconds=1.0)).cached()
