from .agents.cache import IdentifierCache
from .agents.fetchers import BrowserFetcher, BrowserPool, HttpxFetcher, PageFetcher
from .agents.resolution import ResolutionAgent
from .settings import settings

browser_pool = BrowserPool(user_agent=settings.user_agent)
fetcher = PageFetcher(
    HttpxFetcher(timeout=settings.http_timeout_sec, user_agent=settings.user_agent),
    BrowserFetcher(
        browser_pool,
        nav_timeout_ms=settings.browser_nav_timeout_ms,
        settle_ms=settings.browser_settle_ms,
    ),
    resource_constrained=settings.resource_constrained,
)
identifier_cache = IdentifierCache(settings.identifier_cache_size)
resolver = ResolutionAgent(
    fetcher,
    identifier_cache,
    base_url=settings.base_url,
    sweep_ids=settings.vessel_sweep_ids,
)


def get_resolver() -> ResolutionAgent:
    """ResolutionAgentのFastAPI依存性。"""
    return resolver


async def shutdown() -> None:
    await fetcher.aclose()
