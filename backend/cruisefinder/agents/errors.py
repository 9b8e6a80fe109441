from __future__ import annotations

from typing import List, Tuple


class CruiseFinderError(Exception):
    """cruisefinder の例外の基底クラス。"""


class InvalidInputError(CruiseFinderError, ValueError):
    """名前が未指定・文字列でない場合。ネットワークアクセス前に送出する。"""


class FetchError(CruiseFinderError):
    """ネットワーク失敗、2xx以外のステータス、描画タイムアウト。"""

    def __init__(self, url: str, cause: BaseException | str):
        self.url = url
        self.cause = cause
        super().__init__(f"failed to fetch {url}: {cause}")


class NotFoundError(CruiseFinderError):
    """全ての解決戦略を使い切っても検証済みページが得られなかった場合。"""

    def __init__(self, name: str, kind: str, attempts: List[Tuple[str, bool]] | None = None):
        self.name = name
        self.kind = kind
        # (strategy名, 成功したか) の試行履歴
        self.attempts = list(attempts or [])
        super().__init__(f"could not resolve {kind} {name!r}")

    def suggestion(self) -> str:
        listing = "GET /ships" if self.kind == "vessel" else "GET /ports"
        return (
            f'Could not find {self.kind} "{self.name}" on CruiseMapper. '
            f"The name might be incorrect or it might not be in their database. "
            f"Try {listing} to find the exact name."
        )
