from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from bs4 import BeautifulSoup
from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; CruiseMapperBot/1.0)"

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# 低メモリ環境向けのChromium起動オプション
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-backgrounding-occluded-windows",
    "--disable-features=TranslateUI,VizDisplayCompositor",
]


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


class HttpxFetcher:
    """実際にHTTP GETでページを取得するフェッチャ（軽量側）。"""

    def __init__(
        self,
        timeout: float = 10.0,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"User-Agent": user_agent, **BROWSER_HEADERS}
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    async def fetch(self, url: str, *, prefer_heavy: bool = False) -> BeautifulSoup:
        try:
            resp = await self.client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(url, exc) from exc
        return parse_html(resp.text)

    async def aclose(self) -> None:
        await self.client.aclose()


class BrowserPool:
    """プロセス全体で1つだけ持つヘッドレスブラウザの管理。

    初回利用時に起動し、以降はリクエストごとに独立したページを払い出す。
    startはロックで守り、同時に呼ばれても二重起動しない。
    """

    def __init__(self, *, user_agent: str = DEFAULT_USER_AGENT, launcher=async_playwright):
        self.user_agent = user_agent
        self._launcher = launcher
        self._playwright = None
        self._browser = None
        self._context: BrowserContext | None = None
        self._lock = asyncio.Lock()

    @property
    def started(self) -> bool:
        return self._context is not None

    async def start(self) -> BrowserContext:
        if self._context is not None:
            return self._context
        async with self._lock:
            if self._context is None:
                logger.info("launching headless chromium")
                playwright = await self._launcher().start()
                try:
                    browser = await playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS)
                    context = await browser.new_context(
                        user_agent=self.user_agent,
                        viewport={"width": 800, "height": 600},
                    )
                except BaseException:
                    await playwright.stop()
                    raise
                self._playwright = playwright
                self._browser = browser
                self._context = context
        return self._context

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        context = await self.start()
        page = await context.new_page()
        try:
            yield page
        finally:
            await page.close()

    async def shutdown(self) -> None:
        async with self._lock:
            if self._playwright is None:
                return
            logger.info("closing headless chromium")
            try:
                if self._browser is not None:
                    await self._browser.close()
            finally:
                await self._playwright.stop()
                self._playwright = None
                self._browser = None
                self._context = None


class BrowserFetcher:
    """ブラウザで描画した後のHTMLを取得するフェッチャ（重量側）。"""

    def __init__(self, pool: BrowserPool, *, nav_timeout_ms: int = 8000, settle_ms: int = 500):
        self.pool = pool
        self.nav_timeout_ms = nav_timeout_ms
        self.settle_ms = settle_ms

    async def fetch(self, url: str, *, prefer_heavy: bool = True) -> BeautifulSoup:
        try:
            async with self.pool.page() as page:
                response = await page.goto(url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
                if response is not None and not response.ok:
                    raise FetchError(url, f"HTTP {response.status}")
                await page.wait_for_timeout(self.settle_ms)
                html = await page.content()
        except (PlaywrightError, OSError) as exc:
            raise FetchError(url, exc) from exc
        return parse_html(html)


class PageFetcher:
    """重量/軽量の2系統を切り替えるフェッチャ。

    resource_constrained のときは常に軽量側。それ以外はブラウザを先に試し、
    失敗したらHTTP GETでもう一度取りに行く。
    """

    def __init__(
        self,
        light: HttpxFetcher,
        heavy: BrowserFetcher | None = None,
        *,
        resource_constrained: bool = False,
    ):
        self.light = light
        self.heavy = heavy
        self.resource_constrained = resource_constrained

    @property
    def uses_browser(self) -> bool:
        return self.heavy is not None and not self.resource_constrained

    async def fetch(self, url: str, *, prefer_heavy: bool = True) -> BeautifulSoup:
        if prefer_heavy and self.uses_browser:
            try:
                soup = await self.heavy.fetch(url)
                logger.debug("fetched via browser: %s", url)
                return soup
            except FetchError as exc:
                logger.info("browser fetch failed, falling back to HTTP: %s", exc)
        soup = await self.light.fetch(url)
        logger.debug("fetched via HTTP: %s", url)
        return soup

    async def aclose(self) -> None:
        try:
            await self.light.aclose()
        finally:
            if self.heavy is not None:
                await self.heavy.pool.shutdown()
