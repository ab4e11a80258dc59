from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from src.shared.manifest import Difficulty

from .content_manager import CacheInfo, ContentFacade, ContentState


class ContainerSummaryOut(BaseModel):
    name: str
    icon: str
    color: str
    exercise_count: int


class ContentStateOut(BaseModel):
    is_initializing: bool
    initialization_error: Optional[str] = None
    update_available: bool
    cache_size_description: str
    last_sync_timestamp: Optional[datetime] = None
    sync_state: str
    sync_error: Optional[str] = None
    workouts: list[ContainerSummaryOut]


class ExerciseOut(BaseModel):
    section: str
    move: str
    description: str
    instructions: str
    video_file: str
    video_available: bool


class CacheInfoOut(BaseModel):
    size_bytes: int
    size_description: str
    last_sync_timestamp: Optional[datetime] = None


class UpdateCheckOut(BaseModel):
    checked: bool
    update_available: bool


def _state_out(state: ContentState) -> ContentStateOut:
    return ContentStateOut(
        is_initializing=state.is_initializing,
        initialization_error=state.initialization_error,
        update_available=state.update_available,
        cache_size_description=state.cache_size_description,
        last_sync_timestamp=state.last_sync_timestamp,
        sync_state=state.sync_state,
        sync_error=state.sync_error,
        workouts=[
            ContainerSummaryOut(
                name=c.name,
                icon=c.workout_icon,
                color=c.color_tag,
                exercise_count=len(c.exercises),
            )
            for c in state.containers
        ],
    )


def _cache_out(info: CacheInfo) -> CacheInfoOut:
    return CacheInfoOut(
        size_bytes=info.size_bytes,
        size_description=info.size_description,
        last_sync_timestamp=info.last_sync_timestamp,
    )


def create_content_router(*, facade: ContentFacade) -> APIRouter:
    router = APIRouter(prefix="/api/content", tags=["content"])

    @router.get("/state", response_model=ContentStateOut)
    async def get_state() -> ContentStateOut:
        return _state_out(facade.state)

    @router.get("/workouts")
    async def get_workouts() -> list[dict[str, Any]]:
        return [c.to_dict() for c in facade.containers]

    @router.get("/workouts/{name}/exercises", response_model=list[ExerciseOut])
    async def get_exercises(name: str, difficulty: Difficulty = Difficulty.BEGINNER) -> list[ExerciseOut]:
        container = next((c for c in facade.containers if c.name == name), None)
        if container is None:
            raise HTTPException(status_code=404, detail=f"Unknown workout: {name}")
        return [
            ExerciseOut(
                section=e.section,
                move=e.move,
                description=e.description,
                instructions=e.instructions_for(difficulty),
                video_file=e.video_file_name,
                video_available=facade.video_location(e) is not None,
            )
            for e in container.exercises
        ]

    @router.post("/initialize", response_model=ContentStateOut)
    async def initialize() -> ContentStateOut:
        await facade.initialize()
        return _state_out(facade.state)

    @router.post("/refresh", response_model=ContentStateOut)
    async def refresh() -> ContentStateOut:
        await facade.refresh()
        return _state_out(facade.state)

    @router.post("/check-updates", response_model=UpdateCheckOut)
    async def check_updates() -> UpdateCheckOut:
        result = await facade.check_for_updates()
        return UpdateCheckOut(checked=result is not None, update_available=facade.update_available)

    @router.get("/cache", response_model=CacheInfoOut)
    async def get_cache() -> CacheInfoOut:
        return _cache_out(facade.cache_info())

    @router.delete("/cache", response_model=ContentStateOut)
    async def clear_cache() -> ContentStateOut:
        await facade.clear_cache()
        return _state_out(facade.state)

    return router
