from __future__ import annotations

from typing import Dict, List

from bs4 import BeautifulSoup

from ..agents.base import EntityKind
from ..agents.crawler import extract_identifier
from ..agents.resolution import ResolutionAgent
from ..agents.text_extract import cell_texts
from ..agents.validation import page_title
from ..schemas import PortCall, PortScheduleResponse

MAX_PORT_CALLS = 30

# 見出しの語 → PortCall のフィールド（上から順に判定）
HEADER_FIELDS = [
    ("ship", "ship"),
    ("arrival", "arrival"),
    ("departure", "departure"),
    ("date", "date"),
    ("line", "cruise_line"),
]


def _field_for(header: str) -> str | None:
    for word, field in HEADER_FIELDS:
        if word in header:
            return field
    return None


def extract_port_calls(soup: BeautifulSoup) -> List[PortCall]:
    calls: List[PortCall] = []
    for table in soup.find_all("table"):
        headers = [th.get_text().strip().lower() for th in table.find_all("th")]
        if not any("ship" in h or "arrival" in h or "date" in h for h in headers):
            continue
        for i, tr in enumerate(table.find_all("tr")):
            if i == 0:
                continue
            data: Dict[str, str] = {}
            for k, text in enumerate(cell_texts(tr)):
                field = _field_for(headers[k]) if k < len(headers) else None
                if field and field not in data:
                    data[field] = text
            if data.get("ship"):
                calls.append(PortCall(**data))
    return calls


async def port_schedule(resolver: ResolutionAgent, port_name: str) -> PortScheduleResponse:
    resolved = await resolver.resolve(port_name, EntityKind.port)
    calls = extract_port_calls(resolved.document)
    return PortScheduleResponse(
        port=port_name,
        url=resolved.url,
        port_id=resolved.identifier or extract_identifier(resolved.url),
        page_title=page_title(resolved.document),
        ships_found=len(calls),
        ships=calls[:MAX_PORT_CALLS],
    )
