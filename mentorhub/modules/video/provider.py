"""Video SDK boundary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from mentorhub.core.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CallHandle:
    room_ref: str
    join_url: str
    participant_token: str


class VideoProvider(Protocol):
    async def create_or_join_call(self, room_ref: str, user_id: UUID) -> CallHandle: ...

    async def end_call(self, room_ref: str) -> None: ...


class SimulatedVideoProvider:
    """Hands out deterministic room links without a real backend."""

    base_url = "https://video.mentorhub.local/rooms"

    async def create_or_join_call(self, room_ref: str, user_id: UUID) -> CallHandle:
        logger.info("User %s joins simulated room %s", user_id, room_ref)
        return CallHandle(
            room_ref=room_ref,
            join_url=f"{self.base_url}/{room_ref}",
            participant_token=f"{room_ref}:{user_id.hex}",
        )

    async def end_call(self, room_ref: str) -> None:
        logger.info("Simulated room %s closed", room_ref)


def get_video_provider() -> VideoProvider:
    provider = get_settings().video_provider
    if provider == "simulated":
        return SimulatedVideoProvider()
    raise ValueError(f"Unsupported video provider: {provider}")
