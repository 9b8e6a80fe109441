from __future__ import annotations

import logging
import re
from typing import List
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .base import EntityKind, EntityLink, Fetcher

logger = logging.getLogger(__name__)

# 末尾の "-123" → "id=123" → 末尾の "/123" の順に試す
IDENTIFIER_PATTERNS = [
    re.compile(r"-(\d+)$"),
    re.compile(r"(?:^|[?&;/])id[=:](\d+)"),
    re.compile(r"/(\d+)$"),
]


def extract_identifier(href: str | None) -> str | None:
    if not href:
        return None
    h = href.split("#", 1)[0].rstrip("/")
    for pattern in IDENTIFIER_PATTERNS:
        m = pattern.search(h)
        if m:
            return m.group(1)
    return None


def listing_url(base_url: str, kind: EntityKind) -> str:
    return f"{base_url.rstrip('/')}/{kind.path}"


def canonical_url(base_url: str, kind: EntityKind, slug: str, identifier: str | None = None) -> str:
    """スラッグ＋ID（IDが無ければスラッグのみ）のページURL。"""
    tail = f"{slug}-{identifier}" if identifier else slug
    return f"{base_url.rstrip('/')}/{kind.path}/{tail}"


def page_slug(url: str, identifier: str | None) -> str | None:
    """URL末尾の "<スラッグ>-<ID>" からスラッグ部分を取り出す。その形でなければNone。"""
    if not identifier:
        return None
    tail = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]
    suffix = f"-{identifier}"
    if not tail.endswith(suffix) or len(tail) == len(suffix):
        return None
    return tail[: -len(suffix)]


class ListingCrawler:
    """一覧ページ（/ships, /ports）から個別ページへのリンクを集める。"""

    def __init__(self, fetcher: Fetcher, base_url: str):
        self.fetcher = fetcher
        self.base_url = base_url

    def _is_canonical(self, url: str, kind: EntityKind) -> bool:
        path = urlparse(url).path
        return re.search(rf"/{kind.path}/[A-Za-z0-9-]+-\d+$", path) is not None

    def extract_links(self, soup: BeautifulSoup, kind: EntityKind, *, canonical_only: bool = False) -> List[EntityLink]:
        links: List[EntityLink] = []
        seen: set[str] = set()
        for a in soup.select(f'a[href*="/{kind.path}/"]'):
            href = a.get("href")
            name = " ".join(a.get_text().split())
            if not href or not name:
                continue
            url = href if href.startswith("http") else urljoin(self.base_url, href)
            if canonical_only and not self._is_canonical(url, kind):
                continue
            # uniq while preserving order
            if url in seen:
                continue
            seen.add(url)
            links.append(EntityLink(name=name, url=url, identifier=extract_identifier(url)))
        return links

    async def fetch_links(self, kind: EntityKind, *, canonical_only: bool = False) -> List[EntityLink]:
        url = listing_url(self.base_url, kind)
        soup = await self.fetcher.fetch(url)
        links = self.extract_links(soup, kind, canonical_only=canonical_only)
        logger.info("found %d %s links on %s", len(links), kind.value, url)
        return links
