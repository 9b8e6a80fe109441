"""
CruiseFinder API。

起動例（リポジトリ直下から）:
    uvicorn cruisefinder.main:app --app-dir backend --reload
    RESOURCE_CONSTRAINED=true uvicorn cruisefinder.main:app --app-dir backend --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from . import runtime
from .agents.resolution import ResolutionAgent
from .api import public
from .runtime import get_resolver
from .settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # 終了シグナルでブラウザとHTTPクライアントを閉じる
    await runtime.shutdown()


app = FastAPI(
    title="CruiseFinder API",
    version="0.1.0",
    description="CruiseMapper の船・港ページを名前から特定して要約するAPI",
    lifespan=lifespan,
)

app.include_router(public.router, tags=["public"])


@app.get("/healthz", tags=["health"])
def healthcheck(resolver: ResolutionAgent = Depends(get_resolver)) -> dict:
    """簡易ヘルスチェック"""
    return {
        "status": "ok",
        "browser": getattr(resolver.fetcher, "uses_browser", False),
        "cache_size": resolver.cache_for("vessel").size + resolver.cache_for("port").size,
    }
