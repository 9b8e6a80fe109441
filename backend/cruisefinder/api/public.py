from typing import Awaitable, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query

from ..agents.base import EntityKind
from ..agents.errors import FetchError, InvalidInputError, NotFoundError
from ..agents.resolution import ResolutionAgent
from ..runtime import get_resolver
from ..schemas import (
    CacheResponse,
    CruiseLinesResponse,
    CruiseSearchResponse,
    EntityListResponse,
    PortScheduleResponse,
    ShipDetailsResponse,
    ShipScheduleResponse,
)
from ..services import catalog, ports, ships

T = TypeVar("T")

router = APIRouter()


async def _answer(pending: Awaitable[T]) -> T:
    try:
        return await pending
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.suggestion())
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=f"CruiseMapper page unavailable: {exc.url}")


@router.get("/ships", response_model=EntityListResponse)
async def list_ships(
    cruise_line: Optional[str] = Query(None, description='名前で絞り込む（例: "Royal Caribbean"）'),
    limit: int = Query(50, ge=1, le=500),
    resolver: ResolutionAgent = Depends(get_resolver),
) -> EntityListResponse:
    return await _answer(ships.list_entities(resolver, EntityKind.vessel, cruise_line=cruise_line, limit=limit))


@router.get("/ships/{ship_name}", response_model=ShipDetailsResponse)
async def get_ship(ship_name: str, resolver: ResolutionAgent = Depends(get_resolver)) -> ShipDetailsResponse:
    return await _answer(ships.ship_details(resolver, ship_name))


@router.get("/ships/{ship_name}/schedule", response_model=ShipScheduleResponse)
async def get_ship_schedule(ship_name: str, resolver: ResolutionAgent = Depends(get_resolver)) -> ShipScheduleResponse:
    return await _answer(ships.ship_schedule(resolver, ship_name))


@router.get("/ports", response_model=EntityListResponse)
async def list_ports(
    limit: int = Query(50, ge=1, le=500),
    resolver: ResolutionAgent = Depends(get_resolver),
) -> EntityListResponse:
    return await _answer(ships.list_entities(resolver, EntityKind.port, limit=limit))


@router.get("/ports/{port_name}", response_model=PortScheduleResponse)
async def get_port_schedule(port_name: str, resolver: ResolutionAgent = Depends(get_resolver)) -> PortScheduleResponse:
    return await _answer(ports.port_schedule(resolver, port_name))


@router.get("/cruise-lines", response_model=CruiseLinesResponse)
async def get_cruise_lines(resolver: ResolutionAgent = Depends(get_resolver)) -> CruiseLinesResponse:
    return await _answer(catalog.list_cruise_lines(resolver))


@router.get("/cruises", response_model=CruiseSearchResponse)
async def search_cruises(
    departure_date: Optional[str] = Query(None, description="YYYY-MM"),
    destination: Optional[str] = Query(None, description='例: "Caribbean"'),
    resolver: ResolutionAgent = Depends(get_resolver),
) -> CruiseSearchResponse:
    return await _answer(
        catalog.search_cruises(resolver, departure_date=departure_date, destination=destination)
    )


@router.get("/cache", response_model=CacheResponse)
def get_cache(resolver: ResolutionAgent = Depends(get_resolver)) -> CacheResponse:
    vessels = resolver.cache_for(EntityKind.vessel)
    port_cache = resolver.cache_for(EntityKind.port)
    return CacheResponse(
        size=vessels.size + port_cache.size,
        max_size=vessels.max_size,
        vessels=vessels.snapshot(),
        ports=port_cache.snapshot(),
    )
