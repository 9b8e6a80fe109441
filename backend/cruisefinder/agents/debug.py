from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Tuple

from .base import slugify


def dprint(enabled: bool, *parts: object) -> None:
    if not enabled:
        return
    print(*parts)


def format_attempts(attempts: Iterable[Tuple[str, bool]]) -> str:
    """解決戦略の試行履歴を "cached:miss -> listing:hit" の形にする。"""
    return " -> ".join(f"{name}:{'hit' if ok else 'miss'}" for name, ok in attempts)


def save_run(enabled: bool, base_dir: Path, query: str, data: Any) -> Path | None:
    """CLIの結果を runs/<日時>_<スラッグ>.json に保存する。"""
    if not enabled:
        return None
    base_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = base_dir / f"{ts}_{slugify(query) or 'query'}.json"
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    return path
