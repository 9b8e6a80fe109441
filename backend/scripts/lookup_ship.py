"""
船名/港名から CruiseMapper の個別ページを特定し、抽出結果をJSONで表示する。

実行例:
    python backend/scripts/lookup_ship.py "Liberty of the Seas"
    python backend/scripts/lookup_ship.py --kind port Barcelona
    RESOURCE_CONSTRAINED=true python backend/scripts/lookup_ship.py --schedule "Icon of the Seas"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Ensure project root (backend/) is on sys.path so that `cruisefinder` can be imported when running as a script
sys.path.append(str(Path(__file__).resolve().parents[1]))

from cruisefinder import runtime
from cruisefinder.agents.debug import dprint, format_attempts, save_run
from cruisefinder.agents.errors import CruiseFinderError, NotFoundError
from cruisefinder.services import ports, ships
from cruisefinder.settings import settings


async def run(name: str, *, kind: str, schedule: bool) -> dict:
    try:
        if kind == "port":
            result = await ports.port_schedule(runtime.resolver, name)
        elif schedule:
            result = await ships.ship_schedule(runtime.resolver, name)
        else:
            result = await ships.ship_details(runtime.resolver, name)
    finally:
        await runtime.shutdown()
    return result.model_dump(mode="json")


def main() -> None:
    parser = argparse.ArgumentParser(description="船/港の名前から CruiseMapper のページを特定して要約する")
    parser.add_argument("name")
    parser.add_argument("--kind", default="vessel", choices=["vessel", "port"])
    parser.add_argument("--schedule", action="store_true", help="船の諸元ではなく航路・スケジュールを表示")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    debug = settings.agent_debug
    dprint(debug, "resource_constrained=", settings.resource_constrained, "base_url=", settings.base_url)

    try:
        data = asyncio.run(run(args.name, kind=args.kind, schedule=args.schedule))
    except NotFoundError as exc:
        print(exc.suggestion(), file=sys.stderr)
        dprint(debug, "attempts:", format_attempts(exc.attempts))
        sys.exit(1)
    except CruiseFinderError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    saved = save_run(settings.agent_save_runs, Path(__file__).resolve().parents[1] / "runs", args.name, data)
    if saved is not None:
        dprint(debug, "saved=", str(saved))

    print(json.dumps(data, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
