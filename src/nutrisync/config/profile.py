"""Local player identity."""

from __future__ import annotations

import platform
import uuid
from dataclasses import dataclass

from .env import optional_env_var

DEFAULT_USERNAME = "Player"
OWNER_NAMESPACE = uuid.UUID("6f1c2d7e-3b8a-4c55-9e0f-2a4d6b8c1e37")


@dataclass(frozen=True, slots=True)
class ProfileConfig:
    owner_id: str
    default_username: str = DEFAULT_USERNAME


def device_owner_id() -> str:
    """Return an owner id that stays the same across runs on this machine."""

    seed = f"{platform.node()}:{uuid.getnode():012x}"
    return str(uuid.uuid5(OWNER_NAMESPACE, seed))


def get_profile_config() -> ProfileConfig:
    owner_id = optional_env_var("NUTRISYNC_OWNER_ID") or device_owner_id()
    username = optional_env_var("NUTRISYNC_USERNAME") or DEFAULT_USERNAME
    return ProfileConfig(owner_id=owner_id, default_username=username)
