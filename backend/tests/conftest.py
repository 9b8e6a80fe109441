from __future__ import annotations

from typing import Dict, List

import pytest

from cruisefinder.agents.cache import IdentifierCache
from cruisefinder.agents.errors import FetchError
from cruisefinder.agents.fetchers import parse_html
from cruisefinder.agents.resolution import ResolutionAgent

BASE_URL = "https://www.cruisemapper.com"
SHIPS_URL = f"{BASE_URL}/ships"
PORTS_URL = f"{BASE_URL}/ports"


class DummyFetcher:
    """URLごとに用意したHTMLを返す。未登録のURLは404相当の FetchError。"""

    def __init__(self, pages: Dict[str, str] | None = None):
        self.pages = dict(pages or {})
        self.calls: List[str] = []

    async def fetch(self, url: str, *, prefer_heavy: bool = True):
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "HTTP 404")
        return parse_html(self.pages[url])


def page(title: str = "", heading: str = "", body: str = "", head: str = "") -> str:
    title_tag = f"<title>{title}</title>" if title else ""
    h1 = f"<h1>{heading}</h1>" if heading else ""
    return f"<html><head>{title_tag}{head}</head><body>{h1}{body}</body></html>"


def listing(*links: tuple[str, str]) -> str:
    anchors = "".join(f'<li><a href="{href}">{text}</a></li>' for text, href in links)
    return page("Cruise Ships List | CruiseMapper", "Ships", f"<ul>{anchors}</ul>")


@pytest.fixture
def make_resolver():
    def factory(pages: Dict[str, str] | None = None, *, sweep_ids=("737", "734"), cache_size: int = 16):
        fetcher = DummyFetcher(pages)
        cache = IdentifierCache(cache_size)
        resolver = ResolutionAgent(fetcher, cache, base_url=BASE_URL, sweep_ids=list(sweep_ids))
        return resolver, fetcher, cache

    return factory
