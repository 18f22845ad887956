# group_builder/adapters/participants.py
"""
Participant source: who is booked on an adventure.
"""
import logging
from typing import List, Optional, Protocol

import httpx
import pydantic

from group_builder.adapters.http_client import JsonServiceClient
from group_builder.config.settings import settings
from group_builder.domain.errors import FetchError
from group_builder.domain.models import Participant

logger = logging.getLogger(__name__)


class ParticipantSource(Protocol):
    async def fetch_participants(self, adventure_id: str) -> List[Participant]:
        ...


class HttpParticipantSource:
    """GET {base}/adventures/{adventure_id}/participants -> [{"id", "profile_ref"}]"""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.http = JsonServiceClient(base_url or settings.PARTICIPANT_SERVICE_URL, client=client)

    async def fetch_participants(self, adventure_id: str) -> List[Participant]:
        try:
            rows = await self.http.get_json(f"/adventures/{adventure_id}/participants")
            return [Participant.model_validate(r) for r in rows or []]
        except (httpx.HTTPError, pydantic.ValidationError, ValueError) as e:
            logger.exception("Loading participants for adventure %s failed", adventure_id)
            raise FetchError(f"Could not load participants: {e}") from e
