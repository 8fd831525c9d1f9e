"""HTTP routes for the conquest API.

Ticks mutate engine state from a worker thread while holding
``runner.lock``, so every handler reads and writes that state under the same
lock.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from conquest.api.runtime import ApiState, EngineSession
from conquest.domain import difficulty as difficulty_rules
from conquest.domain import targeting
from conquest.domain.enums import AggressionLevel
from conquest.domain.models import CityID

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class Resources(BaseModel):
    gold: int
    troops: int
    food: int


class EmpireResponse(BaseModel):
    resources: Resources
    available: Resources
    attributes: dict[str, int]
    owned_city_ids: list[str]
    settings: dict[str, object]
    level: int
    experience: int
    equipment_tokens: int


class CityResponse(BaseModel):
    id: str
    name: str
    tier: str
    owner: str
    garrison: int
    base_defense: int
    yields: Resources
    under_siege: bool
    unlocked: bool


class PlanResponse(BaseModel):
    city_id: str
    troop_allocation: int
    cost: dict[str, float]
    success_probability: float
    expected_rewards: dict[str, int]
    difficulty_rating: float
    score: float


class BattleRecordResponse(BaseModel):
    id: int
    city_id: str
    status: str
    troops_committed: int
    gold_committed: int
    started_at: float
    resolve_at: float
    resolved_at: float | None
    manual: bool
    victor: str | None
    casualties: dict[str, int] | None
    rewards: dict[str, int] | None


class CycleResultResponse(BaseModel):
    success: bool
    detail: str
    reason: str | None
    plan: PlanResponse | None
    record: BattleRecordResponse | None


class AutomationStatusResponse(BaseModel):
    state: str
    paused: bool
    running: bool
    interval_seconds: float
    next_check_at: float | None
    in_flight: list[BattleRecordResponse]


class AutomationSettingsRequest(BaseModel):
    aggression: AggressionLevel | None = None
    reserve_percentage: float | None = Field(default=None, ge=0.0, le=1.0)
    max_concurrent_battles: int | None = Field(default=None, ge=1)


class AttackRequest(BaseModel):
    city_id: str = Field(min_length=1)
    troops: int


class CatchUpRequest(BaseModel):
    last_active_at: float | None = None
    now: float | None = None


class OfflineResultResponse(BaseModel):
    offline_hours: float
    battles_fought: int
    successful_battles: int
    failed_battles: int
    resources_gained: Resources
    resources_lost: Resources
    experience_gained: int
    equipment_tokens_gained: int
    cities_conquered: int
    milestones: list[str]


class CatchUpResponse(BaseModel):
    applied: bool
    result: OfflineResultResponse | None


class StatisticsResponse(BaseModel):
    total_battles: int
    victories: int
    defeats: int
    spoils_gained: int
    troops_lost: int
    cities_conquered: int
    win_streak: int
    loss_streak: int
    win_rate: float
    difficulty_factor: float


def _automation_status(state: ApiState) -> AutomationStatusResponse:
    scheduler = state.scheduler
    return AutomationStatusResponse(
        state=str(scheduler.state),
        paused=scheduler.paused,
        running=state.runner.running,
        interval_seconds=scheduler.interval_seconds,
        next_check_at=scheduler.next_check_at,
        in_flight=[
            BattleRecordResponse.model_validate(EngineSession.to_record_dict(record))
            for record in scheduler.in_flight()
        ],
    )


def _statistics(state: ApiState) -> StatisticsResponse:
    scheduler = state.scheduler
    stats = scheduler.statistics
    owned = len(scheduler.store.get_player_state().owned_city_ids)
    return StatisticsResponse(
        total_battles=stats.total_battles,
        victories=stats.victories,
        defeats=stats.defeats,
        spoils_gained=stats.spoils_gained,
        troops_lost=stats.troops_lost,
        cities_conquered=stats.cities_conquered,
        win_streak=stats.win_streak,
        loss_streak=stats.loss_streak,
        win_rate=difficulty_rules.rolling_win_rate(stats, rules=scheduler.rules),
        difficulty_factor=difficulty_rules.current_difficulty(stats, owned, rules=scheduler.rules),
    )


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    async with state.runner.lock:
        return {
            "status": "ok",
            "scheduler_state": str(state.scheduler.state),
            "interval_seconds": state.scheduler.interval_seconds,
        }


@router.get("/empire", response_model=EmpireResponse)
async def get_empire(state: ApiStateDep) -> EmpireResponse:
    async with state.runner.lock:
        empire = state.scheduler.store.get_player_state()
        return EmpireResponse.model_validate(EngineSession.to_empire_dict(empire, state.rules))


@router.get("/cities", response_model=list[CityResponse])
async def list_cities(state: ApiStateDep) -> list[CityResponse]:
    async with state.runner.lock:
        empire = state.scheduler.store.get_player_state()
        return [
            CityResponse.model_validate(EngineSession.to_city_dict(city, empire))
            for city in state.scheduler.registry.all_cities()
        ]


@router.get("/cities/{city_id}", response_model=CityResponse)
async def get_city(city_id: str, state: ApiStateDep) -> CityResponse:
    async with state.runner.lock:
        city = state.scheduler.registry.get_city_by_id(CityID(city_id))
        empire = state.scheduler.store.get_player_state()
        return CityResponse.model_validate(EngineSession.to_city_dict(city, empire))


@router.get("/candidates", response_model=list[PlanResponse])
async def list_candidates(state: ApiStateDep) -> list[PlanResponse]:
    scheduler = state.scheduler
    async with state.runner.lock:
        plans = targeting.rank_targets(
            scheduler.store.get_player_state(),
            scheduler.registry.all_cities(),
            scheduler.statistics,
            rules=scheduler.rules,
        )
        return [PlanResponse.model_validate(EngineSession.to_plan_dict(plan)) for plan in plans]


@router.get("/automation", response_model=AutomationStatusResponse)
async def automation_status(state: ApiStateDep) -> AutomationStatusResponse:
    async with state.runner.lock:
        return _automation_status(state)


@router.put("/automation/settings", response_model=EmpireResponse)
async def update_automation_settings(
    request: AutomationSettingsRequest, state: ApiStateDep
) -> EmpireResponse:
    async with state.runner.lock:
        empire = state.scheduler.store.get_player_state()
        if request.aggression is not None:
            empire.settings.aggression = request.aggression
        if request.reserve_percentage is not None:
            empire.settings.reserve_percentage = request.reserve_percentage
        if request.max_concurrent_battles is not None:
            empire.settings.max_concurrent_battles = request.max_concurrent_battles
        state.session.save()
        return EmpireResponse.model_validate(EngineSession.to_empire_dict(empire, state.rules))


@router.post("/automation/pause", response_model=AutomationStatusResponse)
async def pause_automation(state: ApiStateDep) -> AutomationStatusResponse:
    async with state.runner.lock:
        state.scheduler.pause()
        state.session.save()
        return _automation_status(state)


@router.post("/automation/resume", response_model=AutomationStatusResponse)
async def resume_automation(state: ApiStateDep) -> AutomationStatusResponse:
    async with state.runner.lock:
        state.scheduler.resume(state.session.now())
        state.session.save()
        return _automation_status(state)


@router.post("/automation/tick", response_model=list[CycleResultResponse])
async def tick_automation(state: ApiStateDep) -> list[CycleResultResponse]:
    results = await state.runner.tick_now()
    async with state.runner.lock:
        return [
            CycleResultResponse.model_validate(EngineSession.to_result_dict(result))
            for result in results
        ]


@router.post("/attacks", response_model=CycleResultResponse)
async def launch_attack(request: AttackRequest, state: ApiStateDep) -> CycleResultResponse:
    async with state.runner.lock:
        result = state.scheduler.manual_attack(
            CityID(request.city_id), request.troops, state.session.now()
        )
        state.session.save()
        return CycleResultResponse.model_validate(EngineSession.to_result_dict(result))


@router.post("/offline/catch-up", response_model=CatchUpResponse)
async def offline_catch_up(request: CatchUpRequest, state: ApiStateDep) -> CatchUpResponse:
    async with state.runner.lock:
        last_active_at = request.last_active_at
        if last_active_at is None:
            last_active_at = state.session.last_saved_at
        if last_active_at is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="no last-active timestamp to catch up from",
            )
        now = request.now if request.now is not None else state.session.now()
        if now < last_active_at:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="now must not precede last_active_at",
            )

        result = state.scheduler.catch_up(last_active_at, now)
        state.session.save()
        if result is None:
            return CatchUpResponse(applied=False, result=None)
        return CatchUpResponse(
            applied=True,
            result=OfflineResultResponse.model_validate(EngineSession.to_offline_dict(result)),
        )


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(state: ApiStateDep) -> StatisticsResponse:
    async with state.runner.lock:
        return _statistics(state)


@router.post("/statistics/reset", response_model=StatisticsResponse)
async def reset_statistics(state: ApiStateDep) -> StatisticsResponse:
    async with state.runner.lock:
        state.scheduler.reset_statistics()
        state.session.save()
        return _statistics(state)


@router.get("/history", response_model=list[BattleRecordResponse])
async def battle_history(
    state: ApiStateDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[BattleRecordResponse]:
    async with state.runner.lock:
        records = list(state.scheduler.history)[-limit:]
        return [
            BattleRecordResponse.model_validate(EngineSession.to_record_dict(record))
            for record in reversed(records)
        ]
