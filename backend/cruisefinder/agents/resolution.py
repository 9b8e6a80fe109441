from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from .base import (
    CandidateURL,
    EntityKind,
    EntityLink,
    Fetcher,
    ResolutionQuery,
    ResolvedDocument,
    Resolver,
    normalize_name,
)
from .cache import IdentifierCache
from .crawler import ListingCrawler, canonical_url, extract_identifier, page_slug
from .errors import FetchError, NotFoundError
from .validation import validate_page

logger = logging.getLogger(__name__)


async def check_candidate(fetcher: Fetcher, candidate: CandidateURL, query: ResolutionQuery) -> ResolvedDocument | None:
    """候補URLを取得して検証する。取得失敗・検証失敗はNone（次の候補へ進む）。"""
    try:
        soup = await fetcher.fetch(candidate.url)
    except FetchError as exc:
        logger.info("[%s] %s", candidate.strategy, exc)
        return None
    if not validate_page(soup, query):
        logger.info("[%s] %s does not describe %r", candidate.strategy, candidate.url, query.name)
        return None
    return ResolvedDocument(
        document=soup,
        url=candidate.url,
        identifier=candidate.identifier,
        strategy=candidate.strategy,
    )


def select_listing_match(links: Iterable[EntityLink], name: str) -> EntityLink | None:
    """一覧のリンク文言から候補を1つ選ぶ。完全一致 → 文言が名前を含む → 名前が文言を含む の順。"""
    normalized = [(normalize_name(link.name), link) for link in links]
    for text, link in normalized:
        if text == name:
            return link
    for text, link in normalized:
        if name in text:
            return link
    for text, link in normalized:
        if text and text in name:
            return link
    return None


class CachedIdentifierStrategy:
    name = "cached"

    def __init__(self, fetcher: Fetcher, caches: Mapping[EntityKind, IdentifierCache], base_url: str):
        self.fetcher = fetcher
        self.caches = caches
        self.base_url = base_url

    async def try_resolve(self, query: ResolutionQuery) -> ResolvedDocument | None:
        entry = self.caches[query.kind].lookup(query.name)
        if entry is None:
            return None
        url = canonical_url(self.base_url, query.kind, entry.slug or query.slug, entry.identifier)
        return await check_candidate(self.fetcher, CandidateURL(url, self.name, entry.identifier), query)


class ListingSearchStrategy:
    name = "listing"

    def __init__(self, fetcher: Fetcher, caches: Mapping[EntityKind, IdentifierCache], base_url: str):
        self.fetcher = fetcher
        self.caches = caches
        self.crawler = ListingCrawler(fetcher, base_url)

    async def try_resolve(self, query: ResolutionQuery) -> ResolvedDocument | None:
        try:
            links = await self.crawler.fetch_links(query.kind)
        except FetchError as exc:
            logger.warning("[%s] listing page unavailable: %s", self.name, exc)
            return None
        link = select_listing_match(links, query.name)
        if link is None:
            logger.info("[%s] no listing entry matches %r", self.name, query.name)
            return None

        logger.info("[%s] %r matched listing entry %r (%s)", self.name, query.name, link.name, link.url)
        resolved = await check_candidate(self.fetcher, CandidateURL(link.url, self.name, link.identifier), query)
        if resolved is not None and link.identifier:
            # 一覧のURLのスラッグは名前から作るものと一致しないことがある（港の "-port-" など）
            slug = page_slug(link.url, link.identifier)
            cache = self.caches[query.kind]
            cache.put(query.name, link.identifier, slug=slug)
            cache.put(normalize_name(link.name), link.identifier, slug=slug)
        return resolved


class IdentifierSweepStrategy:
    name = "sweep"

    def __init__(
        self,
        fetcher: Fetcher,
        caches: Mapping[EntityKind, IdentifierCache],
        base_url: str,
        sweep_ids: Mapping[EntityKind, Sequence[str]],
    ):
        self.fetcher = fetcher
        self.caches = caches
        self.base_url = base_url
        self.sweep_ids = sweep_ids

    def candidates(self, query: ResolutionQuery) -> List[CandidateURL]:
        return [
            CandidateURL(canonical_url(self.base_url, query.kind, query.slug, i), self.name, i)
            for i in self.sweep_ids.get(query.kind, ())
        ]

    async def try_resolve(self, query: ResolutionQuery) -> ResolvedDocument | None:
        for candidate in self.candidates(query):
            resolved = await check_candidate(self.fetcher, candidate, query)
            if resolved is not None:
                self.caches[query.kind].put(query.name, candidate.identifier)
                return resolved
        return None


class BareSlugStrategy:
    name = "bare_slug"

    def __init__(self, fetcher: Fetcher, caches: Mapping[EntityKind, IdentifierCache], base_url: str):
        self.fetcher = fetcher
        self.caches = caches
        self.base_url = base_url

    async def try_resolve(self, query: ResolutionQuery) -> ResolvedDocument | None:
        url = canonical_url(self.base_url, query.kind, query.slug)
        resolved = await check_candidate(self.fetcher, CandidateURL(url, self.name), query)
        if resolved is None:
            return None
        # リダイレクト先などで正規URLが分かればIDを拾っておく
        canonical = resolved.document.find("link", rel="canonical")
        href = canonical.get("href") if canonical else None
        identifier = extract_identifier(href)
        if identifier:
            resolved.identifier = identifier
            self.caches[query.kind].put(query.name, identifier, slug=page_slug(href, identifier))
        return resolved


class ResolutionAgent:
    """名前から検証済みの個別ページを確定する。

    キャッシュ済みID → 一覧検索 → ID総当たり → スラッグのみ の順に試し、
    最初に検証を通ったページを返す。全て失敗したら NotFoundError。
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: IdentifierCache,
        *,
        base_url: str,
        sweep_ids: Sequence[str] = (),
        port_cache: IdentifierCache | None = None,
    ):
        self.fetcher = fetcher
        self.base_url = base_url
        self.caches: Dict[EntityKind, IdentifierCache] = {
            EntityKind.vessel: cache,
            EntityKind.port: port_cache if port_cache is not None else IdentifierCache(cache.max_size),
        }
        ids = {EntityKind.vessel: list(sweep_ids)}
        self.strategies: List[Resolver] = [
            CachedIdentifierStrategy(fetcher, self.caches, base_url),
            ListingSearchStrategy(fetcher, self.caches, base_url),
            IdentifierSweepStrategy(fetcher, self.caches, base_url, ids),
            BareSlugStrategy(fetcher, self.caches, base_url),
        ]

    def cache_for(self, kind: EntityKind | str) -> IdentifierCache:
        return self.caches[EntityKind(kind)]

    async def resolve(self, name, kind: EntityKind | str = EntityKind.vessel) -> ResolvedDocument:
        query = name if isinstance(name, ResolutionQuery) else ResolutionQuery.create(name, kind)
        attempts: List[Tuple[str, bool]] = []
        for strategy in self.strategies:
            resolved = await strategy.try_resolve(query)
            attempts.append((strategy.name, resolved is not None))
            if resolved is not None:
                logger.info("resolved %s %r via %s: %s", query.kind.value, query.name, strategy.name, resolved.url)
                return resolved
        logger.warning("could not resolve %s %r after %d strategies", query.kind.value, query.name, len(attempts))
        raise NotFoundError(query.raw, query.kind.value, attempts)
