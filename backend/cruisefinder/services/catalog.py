from __future__ import annotations

import re
from typing import Dict, List
from urllib.parse import urlencode, urljoin

from bs4 import BeautifulSoup

from ..agents.errors import InvalidInputError
from ..agents.resolution import ResolutionAgent
from ..agents.text_extract import cell_texts, joined_text
from ..schemas import CruiseLine, CruiseLinesResponse, CruiseListing, CruiseSearchResponse

MAX_CRUISES = 20
CRUISE_BLOCK_SELECTOR = '.cruise-item, .cruise-result, div[class*="cruise"]'


def _cruise_lines_from(soup: BeautifulSoup, base_url: str) -> List[CruiseLine]:
    lines: List[CruiseLine] = []
    for a in soup.select('a[href*="/cruise-lines/"]'):
        text = a.get_text().strip()
        href = a.get("href")
        if not text or not href or "#" in href:
            continue
        lines.append(CruiseLine(name=text, url=urljoin(base_url, href)))
    return lines


async def list_cruise_lines(resolver: ResolutionAgent) -> CruiseLinesResponse:
    base = resolver.base_url.rstrip("/")
    soup = await resolver.fetcher.fetch(f"{base}/cruise-lines")
    lines = _cruise_lines_from(soup, resolver.base_url)
    return CruiseLinesResponse(total_cruise_lines=len(lines), cruise_lines=lines)


def build_search_url(base_url: str, departure_date: str | None, destination: str | None) -> str:
    params: Dict[str, str] = {}
    if departure_date:
        if not re.fullmatch(r"\d{4}-\d{2}", departure_date.strip()):
            raise InvalidInputError("departure_date must be in YYYY-MM format")
        params["month"] = departure_date.strip()
    if destination and destination.strip():
        params["destination"] = destination.strip().lower()
    url = f"{base_url.rstrip('/')}/cruises"
    return f"{url}?{urlencode(params)}" if params else url


def extract_cruises(soup: BeautifulSoup) -> List[CruiseListing]:
    cruises: List[CruiseListing] = []
    for block in soup.select(CRUISE_BLOCK_SELECTOR):
        listing = CruiseListing(
            ship=joined_text(block, 'a[href*="/ships/"]'),
            departure=joined_text(block, ".date, .departure"),
            duration=joined_text(block, ".duration, .nights"),
            ports=joined_text(block, ".ports, .itinerary"),
            price=joined_text(block, ".price"),
        )
        if listing.ship or listing.departure:
            cruises.append(listing)

    for table in soup.find_all("table"):
        for i, tr in enumerate(table.find_all("tr")):
            if i == 0:
                continue
            cells = cell_texts(tr)
            if len(cells) < 3 or not cells[0]:
                continue
            cruises.append(
                CruiseListing(
                    ship=cells[0],
                    departure=cells[1],
                    destination=cells[2],
                    duration=(cells[3] if len(cells) > 3 and cells[3] else "N/A"),
                )
            )
    return cruises


async def search_cruises(
    resolver: ResolutionAgent,
    *,
    departure_date: str | None = None,
    destination: str | None = None,
) -> CruiseSearchResponse:
    url = build_search_url(resolver.base_url, departure_date, destination)
    soup = await resolver.fetcher.fetch(url)
    cruises = extract_cruises(soup)
    search_params = {k: v for k, v in {"departure_date": departure_date, "destination": destination}.items() if v}
    return CruiseSearchResponse(
        search_params=search_params,
        url=url,
        cruises_found=len(cruises),
        cruises=cruises[:MAX_CRUISES],
        note="Cruise data extracted" if cruises else "No cruises found. Try different search parameters.",
    )
