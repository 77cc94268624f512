"""Remote save service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_seconds, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

REMOTE_TIMEOUT_SECONDS = 10.0
PROBE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class RemoteConfig:
    """Holds remote save service configuration values.

    The service is optional: without a base URL and token the gateway reports itself
    unavailable and syncs are skipped.
    """

    base_url: str | None = None
    token: str | None = None
    timeout_seconds: float = REMOTE_TIMEOUT_SECONDS
    probe_url: str | None = None
    probe_timeout_seconds: float = PROBE_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.token)

    def resilience(self) -> ResilienceConfig:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        return ResilienceConfig(
            name="remote-save",
            base_url=self.base_url.rstrip("/") if self.base_url else None,
            timeout_seconds=self.timeout_seconds,
            retry=RetryPolicy(),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            default_headers=headers,
        )

    def probe_resilience(self) -> ResilienceConfig:
        return ResilienceConfig(
            name="connectivity-probe",
            timeout_seconds=self.probe_timeout_seconds,
            retry=RetryPolicy(total=0),
        )


def get_remote_config(*, required: bool = False) -> RemoteConfig:
    """Read the remote settings; ``required`` raises when the URL or token is missing."""

    if required:
        values = require_env_vars(("NUTRISYNC_REMOTE_URL", "NUTRISYNC_REMOTE_TOKEN"))
        base_url: str | None = values["NUTRISYNC_REMOTE_URL"].strip()
        token: str | None = values["NUTRISYNC_REMOTE_TOKEN"].strip()
    else:
        base_url = optional_env_var("NUTRISYNC_REMOTE_URL")
        token = optional_env_var("NUTRISYNC_REMOTE_TOKEN")
    return RemoteConfig(
        base_url=base_url,
        token=token,
        timeout_seconds=env_seconds("NUTRISYNC_REMOTE_TIMEOUT", REMOTE_TIMEOUT_SECONDS),
        probe_url=optional_env_var("NUTRISYNC_PROBE_URL") or base_url,
    )
