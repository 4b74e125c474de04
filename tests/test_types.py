import numpy as np
import pytest

from PaintMixer.Utils.CustomTypes import MixRatio, PaintId, PaintMix, PaintSetDefinition, ResultColor, TargetColor
from PaintMixer.Utils.Errors import InputError
from PaintMixer.Utils.Hash import MixFingerprint, MixId, TargetKey

A = PaintId("Acme", 1)
B = PaintId("Acme", 2)
C = PaintId("Bolt", 100)


def test_paint_id_parse_and_order():
    assert PaintId.parse("Acme:12") == PaintId("Acme", 12)
    assert PaintId.parse("Old Holland:3") == PaintId("Old Holland", 3)
    assert str(PaintId("Acme", 12)) == "Acme:12"
    assert sorted([C, B, A]) == [A, B, C]
    for text in ["Acme", ":3", "Acme:x"]:
        with pytest.raises(InputError):
            PaintId.parse(text)


def test_mix_ratio_is_canonical():
    r1 = MixRatio({B: 0.75, A: 0.25, C: 0.0})
    r2 = MixRatio([(A, 0.25), (B, 0.75)])
    assert r1 == r2
    assert hash(r1) == hash(r2)
    assert r1.paint_ids == (A, B)
    assert C not in r1
    assert r1[B] == 0.75
    assert np.allclose(r1.weights, [0.25, 0.75])


def test_mix_ratio_rejects_duplicates():
    with pytest.raises(InputError):
        MixRatio([(A, 0.5), ("Acme:1", 0.5)])


def test_mix_ratio_all_zero():
    with pytest.raises(InputError):
        MixRatio({A: 0.0})


def test_parts():
    ratio = MixRatio.from_parts({A: 1, B: 2})
    assert ratio[A] == pytest.approx(1 / 3)
    assert ratio.parts() == {A: 1, B: 2}
    assert MixRatio({A: 0.5, B: 0.5}).parts() == {A: 1, B: 1}
    assert MixRatio({A: 1.0}).parts() == {A: 1}
    with pytest.raises(InputError):
        MixRatio.from_parts({A: 0, B: 0})


def test_target_color_validation():
    assert TargetColor.from_lab(50, 10, -10).lab == (50.0, 10.0, -10.0)
    with pytest.raises(InputError):
        TargetColor((50, 0))
    with pytest.raises(InputError):
        TargetColor((float("inf"), 0, 0))


def test_paint_mix_dict_round_trip():
    mix = PaintMix(MixRatio({A: 0.25, B: 0.75}), ResultColor((50.0, 1.0, 2.0), (120, 110, 100), False,
                                                           (0.2, 0.18, 0.15)), 1.5)
    assert PaintMix.from_dict(mix.to_dict()) == mix
    assert mix.paint_count == 2
    assert mix.color.hex == "#786e64"


def test_paint_set_definition_dict_round_trip():
    definition = PaintSetDefinition("watercolor", ["Acme"], ("Acme", "Primaries"), {"Acme": [1, 3]}, 12.5)
    assert PaintSetDefinition.from_dict(definition.to_dict()) == definition


def test_fingerprint_quantizes_ratios():
    assert MixFingerprint(MixRatio({A: 0.5, B: 0.5})) == (("Acme:1", 500000), ("Acme:2", 500000))
    assert MixFingerprint({B: 0.5 + 1e-9, A: 0.5 - 1e-9}) == MixFingerprint({A: 0.5, B: 0.5})
    assert MixFingerprint([(A, 1.0), (B, 1e-8)]) == (("Acme:1", 1000000),)


def test_target_key():
    assert TargetKey(None) is None
    assert TargetKey(TargetColor((50, 0, 0))) == TargetKey([50.00001, 0, 0])
    assert TargetKey([50, 0, 0]) != TargetKey([50.001, 0, 0])


def test_mix_id_is_stable():
    ratio = MixRatio({A: 0.25, B: 0.75})
    assert MixId(ratio) == MixId(MixRatio({B: 0.75, A: 0.25}))
    assert len(MixId(ratio)) == 16
    assert MixId(ratio) != MixId(MixRatio({A: 0.75, B: 0.25}))
