from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from bs4 import BeautifulSoup

from .errors import InvalidInputError


class EntityKind(str, Enum):
    vessel = "vessel"
    port = "port"

    @property
    def path(self) -> str:
        """サイト上のURLパス区分（/ships/..., /ports/...）。"""
        return "ships" if self is EntityKind.vessel else "ports"


class Fetcher(Protocol):
    """ページ取得の抽象。実運用ではhttpx/Playwright、検証ではモックを注入する。"""

    async def fetch(self, url: str, *, prefer_heavy: bool = True) -> BeautifulSoup:
        ...


class Resolver(Protocol):
    """解決戦略の1段。見つからなければNoneを返す。"""

    name: str

    async def try_resolve(self, query: "ResolutionQuery") -> "ResolvedDocument | None":
        ...


def normalize_name(name: str) -> str:
    """大文字小文字と空白の揺れを吸収したキャッシュキー。"""
    return " ".join(name.casefold().split())


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


@dataclass(frozen=True)
class ResolutionQuery:
    name: str  # normalize_name 済み
    kind: EntityKind
    raw: str

    @classmethod
    def create(cls, name, kind: EntityKind | str = EntityKind.vessel) -> "ResolutionQuery":
        if not isinstance(name, str) or not name.strip():
            raise InvalidInputError(f"{EntityKind(kind).value} name is required and must be a non-empty string")
        return cls(name=normalize_name(name), kind=EntityKind(kind), raw=name.strip())

    @property
    def slug(self) -> str:
        return slugify(self.name)


@dataclass(frozen=True)
class CandidateURL:
    url: str
    strategy: str
    identifier: str | None = None


@dataclass
class ResolvedDocument:
    document: BeautifulSoup
    url: str
    identifier: str | None
    strategy: str


@dataclass(frozen=True)
class EntityLink:
    name: str
    url: str
    identifier: str | None
