import json

import pytest

from fleet_battle.ship_catalog import (
    ShipCatalog,
    ShipCatalogError,
    UnknownShipError,
    get_catalog,
    load_ship_catalog,
)


def catalog() -> ShipCatalog:
    return ShipCatalog(
        {
            "fighter": {"label": "Fighter", "category": "Light", "stats": {"attack": 10, "defense": 5}},
            "cruiser": {"label": "Cruiser", "category": "Capital", "stats": {"attack": 44.6, "defense": "30"}},
            "probe": {},
        }
    )


def test_get_returns_rounded_stats():
    cruiser = catalog().get("cruiser")
    assert cruiser.label == "Cruiser"
    assert cruiser.attack == 45
    assert cruiser.defense == 30


def test_missing_stats_default_to_zero():
    probe = catalog().get("probe")
    assert probe.label == "probe"
    assert probe.category == "misc"
    assert probe.attack == 0 and probe.defense == 0


def test_unknown_ship_raises_key_error_with_available_keys():
    with pytest.raises(UnknownShipError, match="Unknown ship 'dreadnought'") as info:
        catalog().get("dreadnought")
    assert isinstance(info.value, KeyError)
    assert "cruiser, fighter, probe" in str(info.value)


def test_resolve_fails_on_first_unknown_key():
    resolved = catalog().resolve(["fighter", "cruiser", "fighter"])
    assert list(resolved) == ["cruiser", "fighter"]
    with pytest.raises(UnknownShipError):
        catalog().resolve(["fighter", "ghost"])


def test_malformed_definitions_are_rejected():
    with pytest.raises(ShipCatalogError, match="invalid stats"):
        ShipCatalog({"fighter": {"stats": [10, 5]}})
    with pytest.raises(ShipCatalogError, match="not a number"):
        ShipCatalog({"fighter": {"stats": {"attack": "strong"}}})
    with pytest.raises(ShipCatalogError, match="mapping"):
        ShipCatalog({"fighter": 12})


def test_grouping_and_listing():
    cat = catalog()
    assert cat.keys() == ["cruiser", "fighter", "probe"]
    assert "fighter" in cat and "ghost" not in cat
    assert len(cat) == 3
    groups = cat.grouped_by_category()
    assert [s.key for s in groups["Light"]] == ["fighter"]
    assert [s.key for s in groups["misc"]] == ["probe"]


def test_packaged_catalog_loads():
    cat = load_ship_catalog()
    fighter = cat.get("fighter")
    assert fighter.attack == 10 and fighter.defense == 5
    assert get_catalog() is get_catalog()


def test_load_from_json_without_wrapper(tmp_path):
    path = tmp_path / "ships.json"
    path.write_text(json.dumps({"scout": {"stats": {"attack": 1, "defense": 1}}}), encoding="utf-8")
    cat = load_ship_catalog(path)
    assert cat.keys() == ["scout"]


def test_load_errors_surface_as_catalog_errors(tmp_path):
    with pytest.raises(ShipCatalogError):
        load_ship_catalog(tmp_path / "absent.yaml")
    path = tmp_path / "ships.yaml"
    path.write_text("ships:\n  - fighter\n", encoding="utf-8")
    with pytest.raises(ShipCatalogError, match="'ships' must be a mapping"):
        load_ship_catalog(path)


def test_explicit_path_does_not_replace_cached_default(tmp_path):
    default = get_catalog()
    path = tmp_path / "ships.yaml"
    path.write_text("ships:\n  scout:\n    stats: {attack: 1, defense: 1}\n", encoding="utf-8")
    custom = get_catalog(path)
    assert custom.keys() == ["scout"]
    assert get_catalog() is default
    assert "fighter" in get_catalog()
