# group_builder/api/routers/sessions.py
"""
Session endpoints: open a group-building session for an adventure and drive
its engine (groups, moves, optimizer, undo/redo, configurations).
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from group_builder.config.settings import settings
from group_builder.domain.errors import Result
from group_builder.domain.grouping import OptimizationOptions
from group_builder.domain.models import Adventure
from group_builder.services.engine import AssignmentEngine
from group_builder.services.sessions import SessionRegistry, get_registry

router = APIRouter()

STATUS_BY_CODE = {
    "not_found": 404,
    "capacity_exceeded": 409,
    "already_assigned": 409,
    "invariant_violation": 409,
    "validation_error": 422,
    "fetch_error": 502,
    "optimization_error": 502,
    "persistence_error": 502,
    "compatibility_compute_error": 502,
}

# ---------- Request schemas ----------

class OpenSessionRequest(BaseModel):
    adventure_id: str
    vendor_id: Optional[str] = None
    name: Optional[str] = None


class CreateGroupRequest(BaseModel):
    name: Optional[str] = None
    max_size: Optional[int] = None


class MoveRequest(BaseModel):
    participant_id: str
    from_group_id: str
    to_group_id: str


class OptimizeRequest(BaseModel):
    group_size: Optional[int] = None
    strategy: Optional[str] = None
    preferences_key_weights: Dict[str, float] = Field(default_factory=dict)
    random_seed: Optional[int] = None


class SaveConfigurationRequest(BaseModel):
    name: str
    description: str = ""

# ---------- Helpers ----------

def get_engine(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> AssignmentEngine:
    engine = registry.get(session_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return engine


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def respond(result: Result, key: str = "data") -> JSONResponse:
    if not result.success:
        raise HTTPException(
            status_code=STATUS_BY_CODE.get(result.error.code, 400),
            detail=result.error.to_dict(),
        )
    return JSONResponse(content={"ok": True, key: to_jsonable(result.data)})


def state_payload(engine: AssignmentEngine) -> Dict[str, Any]:
    return {
        "selected_adventure": to_jsonable(engine.selected_adventure),
        "groups": to_jsonable(engine.groups),
        "unassigned": to_jsonable(engine.unassigned_participants()),
        "can_undo": engine.can_undo(),
        "can_redo": engine.can_redo(),
        "loading": dict(engine.loading),
        "error": engine.error,
        "warnings": engine.warnings,
    }

# ---------- Sessions ----------

@router.post("/")
async def open_session(payload: OpenSessionRequest, registry: SessionRegistry = Depends(get_registry)):
    session_id = registry.create()
    engine = registry.get(session_id)
    engine.select_adventure(Adventure(id=payload.adventure_id, vendor_id=payload.vendor_id, name=payload.name))
    result = await engine.load_participants()
    if not result.success:
        await registry.close(session_id)
        return respond(result)
    return JSONResponse(content={"ok": True, "session_id": session_id, "participants": to_jsonable(result.data)})


@router.get("/{session_id}")
async def get_session(engine: AssignmentEngine = Depends(get_engine)):
    return JSONResponse(content={"ok": True, "state": state_payload(engine)})


@router.delete("/{session_id}")
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    closed = await registry.close(session_id)
    if not closed:
        raise HTTPException(status_code=404, detail="Session not found")
    return JSONResponse(content={"ok": True})


@router.post("/{session_id}/persist")
async def persist_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return respond(await registry.persist(session_id), key="session_id")


@router.post("/{session_id}/resume")
async def resume_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return respond(await registry.resume(session_id), key="groups")

# ---------- Groups ----------

@router.post("/{session_id}/groups")
async def create_group(payload: CreateGroupRequest, engine: AssignmentEngine = Depends(get_engine)):
    return respond(engine.create_group(payload.name, payload.max_size), key="group")


@router.delete("/{session_id}/groups/{group_id}")
async def delete_group(group_id: str, engine: AssignmentEngine = Depends(get_engine)):
    return respond(engine.delete_group(group_id), key="group")


@router.post("/{session_id}/groups/{group_id}/participants/{participant_id}")
async def add_participant(group_id: str, participant_id: str, engine: AssignmentEngine = Depends(get_engine)):
    return respond(await engine.add_participant_to_group(participant_id, group_id), key="group")


@router.delete("/{session_id}/groups/{group_id}/participants/{participant_id}")
async def remove_participant(group_id: str, participant_id: str, engine: AssignmentEngine = Depends(get_engine)):
    return respond(await engine.remove_participant_from_group(participant_id, group_id), key="group")


@router.post("/{session_id}/move")
async def move_participant(payload: MoveRequest, engine: AssignmentEngine = Depends(get_engine)):
    result = await engine.move_participant(payload.participant_id, payload.from_group_id, payload.to_group_id)
    return respond(result, key="groups")


@router.post("/{session_id}/optimize")
async def optimize(payload: OptimizeRequest, engine: AssignmentEngine = Depends(get_engine)):
    options = OptimizationOptions(
        group_size=payload.group_size or settings.GROUP_SIZE_DEFAULT,
        strategy=payload.strategy,
        preferences_key_weights=payload.preferences_key_weights,
        random_seed=payload.random_seed,
    )
    return respond(await engine.generate_optimal_groups(options), key="groups")

# ---------- History / statistics ----------

@router.post("/{session_id}/undo")
async def undo(engine: AssignmentEngine = Depends(get_engine)):
    return respond(engine.undo(), key="groups")


@router.post("/{session_id}/redo")
async def redo(engine: AssignmentEngine = Depends(get_engine)):
    return respond(engine.redo(), key="groups")


@router.get("/{session_id}/statistics")
async def statistics(engine: AssignmentEngine = Depends(get_engine)):
    return JSONResponse(content={"ok": True, "statistics": engine.get_group_statistics()})

# ---------- Configurations ----------

@router.post("/{session_id}/configurations")
async def save_configuration(payload: SaveConfigurationRequest, engine: AssignmentEngine = Depends(get_engine)):
    await engine.wait_for_compatibility()
    return respond(await engine.save_group_configuration(payload.name, payload.description), key="configuration")


@router.get("/{session_id}/configurations")
async def list_configurations(vendor_id: Optional[str] = None, engine: AssignmentEngine = Depends(get_engine)):
    return respond(await engine.load_group_configurations(vendor_id), key="configurations")


@router.post("/{session_id}/configurations/{config_id}/load")
async def load_configuration(config_id: str, engine: AssignmentEngine = Depends(get_engine)):
    return respond(engine.load_configuration(config_id), key="groups")
