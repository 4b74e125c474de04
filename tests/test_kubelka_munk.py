import numpy as np
import pytest

from PaintMixer.ColorMath.KubelkaMunk import (KS_MAX, EffectiveWeights, KSToReflectance, ReflectanceToKS,
                                              SpectralMixer)
from PaintMixer.Observer.Spectra import NUM_BANDS, ReflectanceSpectrum
from PaintMixer.Utils.CustomTypes import MixRatio, Paint, PaintId
from PaintMixer.Utils.Errors import InputError
from PaintMixer.Utils.Hash import MixFingerprint


def test_boundary_reflectances():
    ks = ReflectanceToKS([0.0, 1.0, 0.5])
    assert ks[0] == KS_MAX
    assert ks[1] == 0.0
    assert ks[2] == pytest.approx(0.25)
    R = KSToReflectance(ks)
    assert np.all(np.isfinite(R))
    assert R[0] == pytest.approx(0.0, abs=1e-6)
    assert R[1] == 1.0
    assert R[2] == pytest.approx(0.5)


def test_round_trip_is_stable_for_dark_paints():
    R = np.array([1e-6, 1e-4, 0.01, 0.3, 0.99])
    assert np.allclose(KSToReflectance(ReflectanceToKS(R)), R, rtol=1e-9, atol=1e-12)


def test_single_paint_identity(palette_dataset):
    mixer = SpectralMixer(palette_dataset.paints)
    for paint in palette_dataset:
        mixed = mixer.mix({paint.id: 1.0})
        assert mixed.allclose(paint.spectrum, atol=1e-6)


def test_red_white_mix_lies_between(red_white_dataset, color_space):
    red, white = red_white_dataset.get_paints([PaintId("Acme", 1), PaintId("Acme", 2)])
    mixer = SpectralMixer(red_white_dataset.paints)
    mixed = mixer.mix({red.id: 0.5, white.id: 0.5})
    low = np.minimum(red.spectrum.data, white.spectrum.data)
    high = np.maximum(red.spectrum.data, white.spectrum.data)
    assert np.all(mixed.data > low)
    assert np.all(mixed.data < high)

    L_red = color_space.to_lab(red.spectrum)[0]
    L_white = color_space.to_lab(white.spectrum)[0]
    L_mix = color_space.to_lab(mixed)[0]
    assert L_red < L_mix < L_white


def test_boundary_spectra_mix_without_nan():
    black = Paint(PaintId("X", 1), "Black", ReflectanceSpectrum(np.zeros(NUM_BANDS)))
    white = Paint(PaintId("X", 2), "White", ReflectanceSpectrum(np.ones(NUM_BANDS)))
    mixer = SpectralMixer([black, white])
    mixed = mixer.mix({black.id: 0.5, white.id: 0.5})
    assert np.all(np.isfinite(mixed.data))
    assert np.all((mixed.data >= 0) & (mixed.data <= 1))


@pytest.mark.parametrize("ratios", [
    {"Acme:1": 0.5, "Acme:2": 0.6},
    {"Acme:1": -0.5, "Acme:2": 1.5},
    {"Acme:1": float("nan"), "Acme:2": 1.0},
    {},
])
def test_invalid_ratios(red_white_dataset, ratios):
    mixer = SpectralMixer(red_white_dataset.paints)
    with pytest.raises(InputError):
        mixer.mix(ratios)


def test_unknown_paint(red_white_dataset):
    mixer = SpectralMixer(red_white_dataset.paints)
    with pytest.raises(InputError):
        mixer.mix({"Acme:99": 1.0})


def test_paint_outside_pool(red_white_dataset):
    mixer = SpectralMixer(red_white_dataset.paints)
    with pytest.raises(InputError):
        mixer.mix({"Acme:1": 0.5, "Acme:2": 0.5}, pool=[PaintId("Acme", 1)])


def test_ratio_tolerance(red_white_dataset):
    mixer = SpectralMixer(red_white_dataset.paints)
    mixer.mix({"Acme:1": 0.5, "Acme:2": 0.5 + 5e-7})


def test_order_of_ratios_does_not_matter(palette_dataset):
    mixer = SpectralMixer(palette_dataset.paints)
    a = mixer.mix({"Acme:1": 0.25, "Acme:6": 0.75})
    b = mixer.mix({"Acme:6": 0.75, "Acme:1": 0.25})
    assert a == b


def test_tinting_strength_keeps_identity_and_shifts_mix():
    spectrum_a = ReflectanceSpectrum(np.linspace(0.1, 0.8, NUM_BANDS))
    spectrum_b = ReflectanceSpectrum(np.linspace(0.8, 0.1, NUM_BANDS))
    strong = Paint(PaintId("X", 1), "Strong", spectrum_a, tinting_strength=3.0)
    plain = Paint(PaintId("X", 2), "Plain", spectrum_b)
    mixer = SpectralMixer([strong, plain])
    assert mixer.mix({strong.id: 1.0}).allclose(spectrum_a)

    # 1:1 with a threefold strength behaves like 3:1 without one
    weighted = mixer.mix({strong.id: 0.5, plain.id: 0.5})
    unweighted = SpectralMixer([Paint(PaintId("X", 1), "A", spectrum_a), plain]).mix(
        {PaintId("X", 1): 0.75, plain.id: 0.25})
    assert weighted.allclose(unweighted, atol=1e-12)


def test_effective_weights_sum_to_one():
    w = EffectiveWeights([[0.2, 0.8], [0.5, 0.5]], [2.0, 1.0])
    assert np.allclose(w.sum(axis=1), 1)
    assert w[0] == pytest.approx([4 / 12, 8 / 12])


def test_batch_matches_single_mix(palette_dataset):
    mixer = SpectralMixer(palette_dataset.paints)
    paints = palette_dataset.get_paints(["Acme:2", "Acme:6", "Acme:12"])
    weights = np.array([[1, 1, 4], [2, 2, 2], [4, 1, 1]]) / 6
    batch = mixer.mix_weights(paints, weights)
    for row, w in zip(batch, weights):
        single = mixer.mix(MixRatio(zip([p.id for p in paints], w)))
        assert np.allclose(row, single.data, rtol=0, atol=1e-14)


def test_mix_fingerprints_depend_only_on_the_key(palette_dataset):
    mixer = SpectralMixer(palette_dataset.paints)
    exact = MixRatio({"Acme:2": 1 / 3, "Acme:10": 2 / 3})
    nearby = MixRatio({"Acme:2": 1 / 3 + 1e-7, "Acme:10": 2 / 3 - 1e-7})
    assert MixFingerprint(exact) == MixFingerprint(nearby)

    batch = mixer.mix_fingerprints([MixFingerprint(exact), MixFingerprint(MixRatio({"Acme:2": 0.5, "Acme:10": 0.5}))])
    single = mixer.mix_fingerprints([MixFingerprint(exact)])[0]
    assert np.array_equal(single, mixer.mix_fingerprints([MixFingerprint(nearby)])[0])
    assert np.allclose(batch[0], single, rtol=0, atol=1e-14)
    assert np.allclose(batch[0], mixer.mix(exact).data, atol=1e-5)


def test_mix_fingerprints_rejects_mixed_batches(palette_dataset):
    mixer = SpectralMixer(palette_dataset.paints)
    with pytest.raises(InputError):
        mixer.mix_fingerprints([MixFingerprint({"Acme:1": 1.0}), MixFingerprint({"Acme:2": 1.0})])
    with pytest.raises(InputError):
        mixer.mix_fingerprints([MixFingerprint({"Acme:404": 1.0})])
    with pytest.raises(InputError):
        mixer.mix_fingerprints([])
