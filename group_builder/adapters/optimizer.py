# group_builder/adapters/optimizer.py
"""
Partition optimizer interface.

Given the unassigned pool, an optimizer proposes a complete set of groups.
Timeouts and cancellation are the optimizer's own business.
"""
import logging
import uuid
from typing import List, Optional, Protocol

import httpx
import pydantic

from group_builder.adapters.http_client import JsonServiceClient
from group_builder.config.settings import settings
from group_builder.domain.errors import OptimizationError
from group_builder.domain.grouping import OptimizationOptions, partition_into_groups
from group_builder.domain.models import Group, Participant

logger = logging.getLogger(__name__)


class OptimizerService(Protocol):
    async def optimize_partition(self, participants: List[Participant], options: OptimizationOptions) -> List[Group]:
        ...


class HttpOptimizerService:
    """POST {base}/optimize {"participants": [...], "options": {...}} -> {"groups": [...]}"""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.http = JsonServiceClient(base_url or settings.OPTIMIZER_SERVICE_URL or "", client=client)

    async def optimize_partition(self, participants: List[Participant], options: OptimizationOptions) -> List[Group]:
        payload = {
            "participants": [p.model_dump() for p in participants],
            "options": options.to_dict(),
        }
        try:
            body = await self.http.post_json("/optimize", payload)
            if isinstance(body, dict) and body.get("error"):
                raise OptimizationError(str(body["error"]))
            rows = body.get("groups", []) if isinstance(body, dict) else body
            return [Group.model_validate(r) for r in rows or []]
        except (httpx.HTTPError, pydantic.ValidationError, ValueError) as e:
            raise OptimizationError(f"Optimizer failed: {e}") from e


class EvenSplitOptimizer:
    """
    In-process fallback: keeps pool order and splits it into evenly sized
    groups no larger than options.group_size.
    """

    async def optimize_partition(self, participants: List[Participant], options: OptimizationOptions) -> List[Group]:
        if options.group_size <= 0:
            raise OptimizationError("group_size must be positive")
        chunks = partition_into_groups(list(participants), options.group_size)
        return [
            Group(
                id=f"group-{uuid.uuid4().hex}",
                name=f"Group {i + 1}",
                participants=[p.clone() for p in chunk],
                max_size=options.group_size,
            )
            for i, chunk in enumerate(chunks)
        ]


def build_optimizer(base_url: Optional[str] = None) -> OptimizerService:
    url = base_url if base_url is not None else settings.OPTIMIZER_SERVICE_URL
    if url:
        return HttpOptimizerService(url)
    logger.info("No optimizer url configured, using even split")
    return EvenSplitOptimizer()
