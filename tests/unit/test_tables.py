from importlib import resources
import math
from types import MappingProxyType

import pytest

from fitscan.core.exceptions import ConfigurationError, TableLoadError
from fitscan.tables import (
    MEAL_TYPES,
    default_tables,
    load_tables,
    tables_from,
)

pytestmark = pytest.mark.unit


def bundled_text() -> str:
    return resources.files("fitscan.tables").joinpath("fallback_tables.toml").read_text(
        encoding="utf-8"
    )


def test_bundled_tables_are_complete(tables):
    assert set(MEAL_TYPES) <= set(tables.meals)
    assert isinstance(tables.meals, MappingProxyType)
    assert math.isinf(tables.bmi_buckets[-1].upper)
    assert tables.food_keywords
    assert tables.exercise_keywords
    assert tables.strength.reps > 0


def test_default_tables_are_cached():
    assert default_tables() is default_tables()


def test_meals_mapping_is_read_only(tables):
    with pytest.raises(TypeError):
        tables.meals["breakfast"] = tables.meals["lunch"]


def test_dish_total_calories(tables):
    dish = tables.meals["lunch"]
    assert dish.total_calories == round(dish.calories * dish.weight / 100)


def test_bmr_categories(tables):
    assert tables.bmr.category(1200) == "Low"
    assert tables.bmr.category(1649) == "Normal"
    assert tables.bmr.category(2400) == "High"


def test_custom_table_file_is_loaded(tmp_path):
    path = tmp_path / "tables.toml"
    path.write_text(
        bundled_text().replace('name = "Oatmeal"', 'name = "Granola"', 1),
        encoding="utf-8",
    )
    assert load_tables(path).meals["breakfast"].name == "Granola"
    assert tables_from(str(path)) is tables_from(str(path))


def test_missing_file_raises_table_load_error(tmp_path):
    with pytest.raises(TableLoadError, match="Failed to read file"):
        load_tables(tmp_path / "absent.toml")


def test_invalid_toml_raises_table_load_error(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("meals = [", encoding="utf-8")
    with pytest.raises(TableLoadError, match="Failed to parse TOML"):
        load_tables(path)


def test_missing_section_raises_table_load_error(tmp_path):
    path = tmp_path / "partial.toml"
    path.write_text('default_meal = "snack"\n', encoding="utf-8")
    with pytest.raises(TableLoadError, match="Missing required key"):
        load_tables(path)


def test_invalid_unit_is_rejected(tmp_path):
    path = tmp_path / "units.toml"
    path.write_text(
        bundled_text().replace('weight_type = "g"', 'weight_type = "pcs"', 1),
        encoding="utf-8",
    )
    with pytest.raises(TableLoadError, match="invalid weight_type"):
        load_tables(path)


def test_table_load_error_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_tables(tmp_path / "absent.toml")


def test_meal_aliases_map_onto_meal_table(tables):
    assert tables.canonical_meal("Завтрак") == "breakfast"
    assert tables.canonical_meal("dinner") == "dinner"
    assert tables.canonical_meal("brunch") is None
    assert tables.canonical_meal(None) is None
    assert set(tables.meal_aliases.values()) <= set(tables.meals)


def test_alias_to_unknown_meal_is_rejected(tmp_path):
    path = tmp_path / "aliases.toml"
    path.write_text(
        bundled_text().replace('"ужин" = "dinner"', '"ужин" = "supper"', 1),
        encoding="utf-8",
    )
    with pytest.raises(TableLoadError, match="unknown meal 'supper'"):
        load_tables(path)


def test_tables_without_aliases_still_load(tmp_path):
    text = bundled_text()
    start = text.index("[meal_aliases]")
    end = text.index("# --- Default dish per meal type ---")
    path = tmp_path / "no_aliases.toml"
    path.write_text(text[:start] + text[end:], encoding="utf-8")
    loaded = load_tables(path)
    assert loaded.canonical_meal("обед") is None
    assert loaded.canonical_meal("lunch") == "lunch"
