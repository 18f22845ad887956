# group_builder/adapters/compatibility.py
"""
Compatibility scorer interface.

The engine never computes scores itself; it hands a member list to a
CompatibilityService and stores whatever summary comes back.
"""
import logging
from typing import List, Optional, Protocol

import httpx
import pydantic

from group_builder.adapters.http_client import JsonServiceClient
from group_builder.config.settings import settings
from group_builder.domain.errors import CompatibilityComputeError
from group_builder.domain.models import Compatibility, Participant

logger = logging.getLogger(__name__)


class CompatibilityService(Protocol):
    async def compute_compatibility(self, participants: List[Participant]) -> Compatibility:
        ...


class HttpCompatibilityService:
    """POST {base}/compatibility {"participants": [...]} -> Compatibility"""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.http = JsonServiceClient(base_url or settings.COMPATIBILITY_SERVICE_URL, client=client)

    async def compute_compatibility(self, participants: List[Participant]) -> Compatibility:
        # fewer than two members have no pairs to score
        if len(participants) < 2:
            return Compatibility.neutral()
        payload = {"participants": [p.model_dump() for p in participants]}
        try:
            body = await self.http.post_json("/compatibility", payload)
            return Compatibility.model_validate(body)
        except (httpx.HTTPError, pydantic.ValidationError, ValueError) as e:
            raise CompatibilityComputeError(f"Compatibility service failed: {e}") from e
