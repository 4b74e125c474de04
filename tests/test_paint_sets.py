import pytest

from PaintMixer.PaintSets import ToPaintSet
from PaintMixer.Utils.CustomTypes import PaintId, PaintSetDefinition
from PaintMixer.Utils.Errors import InputError


def test_explicit_colors(palette_dataset):
    definition = PaintSetDefinition("watercolor", ["Acme", "Bolt"], None, {"Acme": [5, 2, 2], "Bolt": [100]})
    paint_set = ToPaintSet(definition, palette_dataset)
    assert paint_set.paints_by_brand == {"Acme": (PaintId("Acme", 2), PaintId("Acme", 5)),
                                         "Bolt": (PaintId("Bolt", 100),)}
    assert paint_set.paint_ids == (PaintId("Acme", 2), PaintId("Acme", 5), PaintId("Bolt", 100))
    assert len(paint_set) == 3
    assert PaintId("Bolt", 100) in paint_set


def test_store_bought_set_fills_an_empty_brand(palette_dataset):
    definition = PaintSetDefinition("watercolor", ["Acme", "Bolt"], ("Acme", "Primaries"), {"Bolt": [100]})
    paint_set = ToPaintSet(definition, palette_dataset)
    assert paint_set.paints_by_brand["Acme"] == (PaintId("Acme", 1), PaintId("Acme", 3), PaintId("Acme", 6))


def test_explicit_colors_win_over_the_store_bought_set(palette_dataset):
    definition = PaintSetDefinition("watercolor", ["Acme"], ("Acme", "Primaries"), {"Acme": [12]})
    assert ToPaintSet(definition, palette_dataset).paint_ids == (PaintId("Acme", 12),)


def test_unknown_color(palette_dataset):
    with pytest.raises(InputError):
        ToPaintSet(PaintSetDefinition("watercolor", ["Acme"], None, {"Acme": [99]}), palette_dataset)


def test_wrong_paint_type(palette_dataset):
    with pytest.raises(InputError):
        ToPaintSet(PaintSetDefinition("watercolor", ["Oilco"], None, {"Oilco": [7]}), palette_dataset)
    with pytest.raises(InputError):
        ToPaintSet(PaintSetDefinition("watercolor", ["Oilco"], ("Oilco", "Starter"), {}), palette_dataset)


def test_unknown_store_bought_set(palette_dataset):
    with pytest.raises(InputError):
        ToPaintSet(PaintSetDefinition("watercolor", ["Acme"], ("Acme", "Deluxe"), {}), palette_dataset)


def test_empty_set(palette_dataset):
    with pytest.raises(InputError):
        ToPaintSet(PaintSetDefinition("watercolor", ["Acme"], None, {}), palette_dataset)
