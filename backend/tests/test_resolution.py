import asyncio

import pytest

from conftest import BASE_URL, PORTS_URL, SHIPS_URL, listing, page

from cruisefinder.agents.base import EntityKind, EntityLink, ResolutionQuery, normalize_name, slugify
from cruisefinder.agents.crawler import extract_identifier
from cruisefinder.agents.errors import InvalidInputError, NotFoundError
from cruisefinder.agents.resolution import select_listing_match

LIBERTY_URL = f"{SHIPS_URL}/liberty-of-the-seas-734"
LIBERTY_PAGE = page(
    "Liberty Of The Seas - Itinerary Schedule, Current Position | CruiseMapper",
    "Liberty Of The Seas",
    "<div>Gross tonnage: 154,407</div>",
)
SHIPS_LISTING = listing(
    ("Freedom Of The Seas", "/ships/freedom-of-the-seas-735"),
    ("Liberty Of The Seas", "/ships/liberty-of-the-seas-734"),
)


def _resolve(resolver, name, kind=EntityKind.vessel):
    return asyncio.run(resolver.resolve(name, kind))


# ---- query normalization -----------------------------------------------


def test_slug_and_cache_key_are_deterministic():
    a = ResolutionQuery.create("Liberty of the Seas")
    b = ResolutionQuery.create("liberty   of the seas")
    assert a.slug == b.slug == "liberty-of-the-seas"
    assert a.name == b.name == "liberty of the seas"
    assert slugify("Liberty of the Seas") == "liberty-of-the-seas"
    assert normalize_name("  LIBERTY\tof the  Seas ") == "liberty of the seas"


@pytest.mark.parametrize("bad", [None, "", "   ", 734])
def test_invalid_input_fails_before_any_fetch(make_resolver, bad):
    resolver, fetcher, _ = make_resolver()
    with pytest.raises(InvalidInputError):
        _resolve(resolver, bad)
    assert fetcher.calls == []


@pytest.mark.parametrize(
    "href, expected",
    [
        ("/ships/liberty-of-the-seas-734", "734"),
        ("https://www.cruisemapper.com/ships/liberty-of-the-seas-734/", "734"),
        ("/ships/view?id=55", "55"),
        ("/ships/12345", "12345"),
        ("/ships/id:77", "77"),
        ("/ships/view?paid=5", None),
        ("/ships/view?shipid=5", None),
        ("/ships/liberty-of-the-seas", None),
        (None, None),
    ],
)
def test_extract_identifier(href, expected):
    assert extract_identifier(href) == expected


def test_listing_match_prefers_exact_then_contains_then_contained():
    links = [
        EntityLink("Oasis", f"{SHIPS_URL}/oasis-1", "1"),
        EntityLink("Oasis Of The Seas (2009)", f"{SHIPS_URL}/oasis-of-the-seas-2009-2", "2"),
        EntityLink("Oasis Of The Seas", f"{SHIPS_URL}/oasis-of-the-seas-3", "3"),
    ]
    assert select_listing_match(links, "oasis of the seas").identifier == "3"
    assert select_listing_match(links[:2], "oasis of the seas").identifier == "2"
    assert select_listing_match(links[:1], "oasis of the seas").identifier == "1"
    assert select_listing_match(links, "carnival breeze") is None


# ---- strategy chain ------------------------------------------------------------


def test_listing_search_resolves_and_caches_identifier(make_resolver):
    resolver, fetcher, cache = make_resolver({SHIPS_URL: SHIPS_LISTING, LIBERTY_URL: LIBERTY_PAGE})

    resolved = _resolve(resolver, "Liberty of the Seas")

    assert resolved.url.endswith("-734")
    assert resolved.identifier == "734"
    assert resolved.strategy == "listing"
    assert cache.get("liberty of the seas") == "734"
    assert fetcher.calls == [SHIPS_URL, LIBERTY_URL]


def test_second_resolution_uses_cache_only(make_resolver):
    resolver, fetcher, _ = make_resolver({SHIPS_URL: SHIPS_LISTING, LIBERTY_URL: LIBERTY_PAGE})
    first = _resolve(resolver, "Liberty of the Seas")
    fetcher.calls.clear()

    second = _resolve(resolver, "liberty   OF the seas")

    assert second.strategy == "cached"
    assert second.url == first.url
    assert fetcher.calls == [LIBERTY_URL]


def test_cached_identifier_beats_listing(make_resolver):
    resolver, fetcher, cache = make_resolver({SHIPS_URL: SHIPS_LISTING, LIBERTY_URL: LIBERTY_PAGE})
    cache.put("liberty of the seas", "734")

    resolved = _resolve(resolver, "Liberty of the Seas")

    assert resolved.strategy == "cached"
    assert SHIPS_URL not in fetcher.calls
    assert len(fetcher.calls) == 1


def test_stale_cache_entry_falls_through_to_listing(make_resolver):
    resolver, fetcher, cache = make_resolver({SHIPS_URL: SHIPS_LISTING, LIBERTY_URL: LIBERTY_PAGE})
    cache.put("liberty of the seas", "999")

    resolved = _resolve(resolver, "Liberty of the Seas")

    assert resolved.strategy == "listing"
    assert fetcher.calls[0] == f"{SHIPS_URL}/liberty-of-the-seas-999"
    assert cache.get("liberty of the seas") == "734"


def test_listing_match_failing_validation_is_not_cached(make_resolver):
    wrong = page("Carnival Breeze | CruiseMapper", "Carnival Breeze")
    sweep_hit = page("Liberty Of The Seas | CruiseMapper", "Liberty Of The Seas")
    resolver, fetcher, cache = make_resolver(
        {
            SHIPS_URL: listing(("Liberty Of The Seas", "/ships/carnival-breeze-500")),
            f"{SHIPS_URL}/carnival-breeze-500": wrong,
            f"{SHIPS_URL}/liberty-of-the-seas-734": sweep_hit,
        },
        sweep_ids=("737", "734"),
    )

    resolved = _resolve(resolver, "Liberty of the Seas")

    assert resolved.strategy == "sweep"
    assert resolved.identifier == "734"
    assert cache.snapshot() == {"liberty of the seas": "734"}
    assert fetcher.calls == [
        SHIPS_URL,
        f"{SHIPS_URL}/carnival-breeze-500",
        f"{SHIPS_URL}/liberty-of-the-seas-737",
        f"{SHIPS_URL}/liberty-of-the-seas-734",
    ]


def test_listing_caches_under_link_text_too(make_resolver):
    resolver, _, cache = make_resolver(
        {
            SHIPS_URL: listing(("Icon Of The Seas (2024)", "/ships/icon-of-the-seas-2100")),
            f"{SHIPS_URL}/icon-of-the-seas-2100": page("Icon of the Seas - Ship Profile", "Icon of the Seas"),
        }
    )

    _resolve(resolver, "Icon of the Seas")

    assert cache.get("icon of the seas") == "2100"
    assert cache.get("icon of the seas (2024)") == "2100"


def test_bare_slug_is_last_resort_and_reads_canonical_id(make_resolver):
    bare_url = f"{SHIPS_URL}/mein-schiff-7"
    resolver, fetcher, cache = make_resolver(
        {
            SHIPS_URL: SHIPS_LISTING,
            bare_url: page(
                "Mein Schiff 7 | CruiseMapper",
                "Mein Schiff 7",
                head=f'<link rel="canonical" href="{SHIPS_URL}/mein-schiff-7-2203">',
            ),
        },
        sweep_ids=("737",),
    )

    resolved = _resolve(resolver, "Mein Schiff 7")

    assert resolved.strategy == "bare_slug"
    assert resolved.url == bare_url
    assert resolved.identifier == "2203"
    assert cache.get("mein schiff 7") == "2203"
    assert fetcher.calls[-1] == bare_url


def test_unknown_name_exhausts_all_four_strategies(make_resolver):
    resolver, fetcher, cache = make_resolver({SHIPS_URL: SHIPS_LISTING}, sweep_ids=("737", "734"))

    with pytest.raises(NotFoundError) as excinfo:
        _resolve(resolver, "Nonexistent Ship Xyz")

    assert excinfo.value.attempts == [
        ("cached", False),
        ("listing", False),
        ("sweep", False),
        ("bare_slug", False),
    ]
    assert fetcher.calls == [
        SHIPS_URL,
        f"{SHIPS_URL}/nonexistent-ship-xyz-737",
        f"{SHIPS_URL}/nonexistent-ship-xyz-734",
        f"{SHIPS_URL}/nonexistent-ship-xyz",
    ]
    assert cache.size == 0
    assert "GET /ships" in excinfo.value.suggestion()


def test_listing_page_failure_is_not_fatal(make_resolver):
    resolver, fetcher, _ = make_resolver({LIBERTY_URL: LIBERTY_PAGE}, sweep_ids=("734",))

    resolved = _resolve(resolver, "Liberty of the Seas")

    assert resolved.strategy == "sweep"
    assert fetcher.calls[0] == SHIPS_URL


def test_port_resolution_skips_identifier_sweep(make_resolver):
    port_url = f"{PORTS_URL}/barcelona"
    resolver, fetcher, _ = make_resolver(
        {
            PORTS_URL: listing(("Miami", "/ports/miami-port-93")),
            port_url: page("Barcelona (Spain) Cruise Port Schedule | CruiseMapper", "Barcelona"),
        }
    )

    resolved = _resolve(resolver, "Barcelona", EntityKind.port)

    assert resolved.strategy == "bare_slug"
    assert fetcher.calls == [PORTS_URL, port_url]
    # 港のキャッシュは船とは別
    assert resolver.cache_for(EntityKind.vessel).size == 0


def test_port_listing_match(make_resolver):
    miami_url = f"{BASE_URL}/ports/miami-port-93"
    resolver, _, _ = make_resolver(
        {
            PORTS_URL: listing(("Miami", "/ports/miami-port-93")),
            miami_url: page("Miami (Florida) Cruise Port Schedule", "Miami"),
        }
    )

    resolved = _resolve(resolver, "miami", EntityKind.port)

    assert resolved.url == miami_url
    assert resolver.cache_for("port").get("miami") == "93"


def test_attempt_trail_formatting(make_resolver, tmp_path):
    from cruisefinder.agents.debug import format_attempts, save_run

    resolver, _, _ = make_resolver({SHIPS_URL: SHIPS_LISTING}, sweep_ids=())
    with pytest.raises(NotFoundError) as excinfo:
        _resolve(resolver, "Nonexistent Ship Xyz")
    assert format_attempts(excinfo.value.attempts) == "cached:miss -> listing:miss -> sweep:miss -> bare_slug:miss"

    assert save_run(False, tmp_path, "Liberty of the Seas", {}) is None
    saved = save_run(True, tmp_path, "Liberty of the Seas", {"ship_id": "734"})
    assert saved.name.endswith("_liberty-of-the-seas.json")
    assert '"734"' in saved.read_text(encoding="utf-8")


def test_port_second_resolution_reuses_listing_url(make_resolver):
    miami_url = f"{PORTS_URL}/miami-port-93"
    resolver, fetcher, _ = make_resolver(
        {
            PORTS_URL: listing(("Miami", "/ports/miami-port-93")),
            miami_url: page("Miami (Florida) Cruise Port Schedule", "Miami"),
        }
    )
    first = _resolve(resolver, "Miami", EntityKind.port)
    fetcher.calls.clear()

    second = _resolve(resolver, "Miami", EntityKind.port)

    assert second.strategy == "cached"
    assert second.url == first.url == miami_url
    assert fetcher.calls == [miami_url]


def test_partial_listing_match_is_cached_with_listing_slug(make_resolver):
    icon_url = f"{SHIPS_URL}/icon-of-the-seas-2100"
    resolver, fetcher, cache = make_resolver(
        {
            SHIPS_URL: listing(("Icon Of The Seas", "/ships/icon-of-the-seas-2100")),
            icon_url: page("Icon of the Seas - Ship Profile", "Icon of the Seas"),
        }
    )
    first = _resolve(resolver, "Icon")
    fetcher.calls.clear()

    second = _resolve(resolver, "Icon")

    assert first.strategy == "listing"
    assert second.strategy == "cached"
    assert second.url == icon_url
    assert fetcher.calls == [icon_url]
    assert cache.lookup("icon").slug == "icon-of-the-seas"
