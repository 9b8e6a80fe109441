from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class CacheEntry:
    identifier: str
    # サイト上のスラッグが名前から作るスラッグと異なる場合のみ保持（例: "miami-port"）
    slug: str | None = None


class IdentifierCache:
    """正規化済みの名前 → サイト上のID のメモ。

    元の実装は無制限に増え続けるため、件数上限を設けて古いものから捨てる（LRU）。
    putはロックで直列化し、同一キーへの同時書き込みは後勝ちにする。
    """

    def __init__(self, max_size: int = 1024):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, name: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None:
                self._entries.move_to_end(name)
            return entry

    def get(self, name: str) -> str | None:
        entry = self.lookup(name)
        return entry.identifier if entry is not None else None

    def put(self, name: str, identifier: str, *, slug: str | None = None) -> None:
        with self._lock:
            self._entries[name] = CacheEntry(identifier, slug)
            self._entries.move_to_end(name)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return {name: entry.identifier for name, entry in self._entries.items()}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
