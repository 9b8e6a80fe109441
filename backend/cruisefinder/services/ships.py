from __future__ import annotations

from typing import List

from ..agents.base import EntityKind
from ..agents.crawler import ListingCrawler, extract_identifier
from ..agents.resolution import ResolutionAgent
from ..agents.text_extract import (
    extract_amenities,
    extract_links,
    extract_specifications,
    extract_status,
    extract_table_rows,
    headers_mention,
)
from ..agents.validation import page_heading, page_title
from ..schemas import (
    EntityListResponse,
    EntitySummary,
    ItineraryLink,
    ShipDetailsResponse,
    ShipScheduleResponse,
)

MAX_AMENITIES = 20
MAX_ITINERARIES = 10
MAX_SCHEDULE_ROWS = 20


async def list_entities(
    resolver: ResolutionAgent,
    kind: EntityKind,
    *,
    cruise_line: str | None = None,
    limit: int = 50,
) -> EntityListResponse:
    """一覧ページから船（または港）を列挙する。

    一覧から拾ったIDは検証を経ていないため、名前→IDキャッシュには書き込まない。
    """
    crawler = ListingCrawler(resolver.fetcher, resolver.base_url)
    links = await crawler.fetch_links(kind, canonical_only=True)

    needle = (cruise_line or "").strip().lower()
    items: List[EntitySummary] = []
    seen: set[str] = set()
    for link in links:
        if needle and needle not in link.name.lower():
            continue
        if link.name in seen:
            continue
        seen.add(link.name)
        items.append(EntitySummary(name=link.name, url=link.url, id=link.identifier))
        if len(items) >= limit:
            break

    return EntityListResponse(
        total_found=len(items),
        returned=len(items),
        cruise_line_filter=cruise_line or "none",
        items=items,
        cache_size=resolver.cache_for(kind).size,
    )


async def ship_details(resolver: ResolutionAgent, ship_name: str) -> ShipDetailsResponse:
    resolved = await resolver.resolve(ship_name, EntityKind.vessel)
    soup = resolved.document
    return ShipDetailsResponse(
        name=page_heading(soup) or ship_name,
        url=resolved.url,
        search_term=ship_name,
        ship_id=resolved.identifier or extract_identifier(resolved.url),
        resolved_by=resolved.strategy,
        specifications=extract_specifications(soup),
        current_status=extract_status(soup),
        amenities=extract_amenities(soup, limit=MAX_AMENITIES),
        page_title=page_title(soup),
    )


async def ship_schedule(resolver: ResolutionAgent, ship_name: str) -> ShipScheduleResponse:
    resolved = await resolver.resolve(ship_name, EntityKind.vessel)
    soup = resolved.document

    links = extract_links(soup, 'a[href*="itinerary"], a[href*="schedule"]', resolver.base_url)
    itineraries = [ItineraryLink(**link) for link in links]
    schedules = extract_table_rows(soup, headers_mention("date", "port"))

    return ShipScheduleResponse(
        ship_name=ship_name,
        url=resolved.url,
        page_title=page_title(soup),
        ship_heading=page_heading(soup),
        ship_id=resolved.identifier or extract_identifier(resolved.url),
        itinerary_links_found=len(itineraries),
        itineraries=itineraries[:MAX_ITINERARIES],
        schedules_found=len(schedules),
        schedules=schedules[:MAX_SCHEDULE_ROWS],
    )
