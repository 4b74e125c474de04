import numpy as np
import pytest

from PaintMixer.ColorSpace import ColorSpace
from PaintMixer.Config import MixerConfig
from PaintMixer.MixCache import MixCache
from PaintMixer.Observer.Spectra import WAVELENGTHS, ReflectanceSpectrum
from PaintMixer.ReflectanceDataset import ReflectanceDataset
from PaintMixer.Utils.CustomTypes import Paint, PaintId, StoreBoughtPaintSet


def gaussian_spectrum(center, width, low, high):
    return low + (high - low) * np.exp(-0.5 * ((WAVELENGTHS - center) / width) ** 2)


def step_spectrum(edge, low, high):
    return low + (high - low) / (1 + np.exp(-(WAVELENGTHS - edge) / 12))


@pytest.fixture
def red_white_dataset():
    red = Paint(PaintId("Acme", 1), "Cadmium Red", ReflectanceSpectrum(step_spectrum(600, 0.05, 0.85)))
    white = Paint(PaintId("Acme", 2), "Titanium White", ReflectanceSpectrum(np.full(len(WAVELENGTHS), 0.9)))
    return ReflectanceDataset([red, white], version="test")


@pytest.fixture
def palette_paints():
    """Twelve watercolors with smooth, clearly different spectra."""
    specs = [
        ("Lemon Yellow", step_spectrum(510, 0.06, 0.88)),
        ("Cadmium Orange", step_spectrum(570, 0.05, 0.85)),
        ("Pyrrole Red", step_spectrum(610, 0.04, 0.80)),
        ("Quinacridone Rose", gaussian_spectrum(420, 30, 0.08, 0.45) + step_spectrum(620, 0.0, 0.4)),
        ("Dioxazine Violet", gaussian_spectrum(410, 35, 0.04, 0.35)),
        ("Ultramarine Blue", gaussian_spectrum(450, 40, 0.05, 0.55)),
        ("Phthalo Blue", gaussian_spectrum(480, 35, 0.04, 0.5)),
        ("Phthalo Green", gaussian_spectrum(510, 30, 0.04, 0.45)),
        ("Sap Green", gaussian_spectrum(550, 40, 0.06, 0.4)),
        ("Yellow Ochre", step_spectrum(550, 0.08, 0.6)),
        ("Burnt Sienna", step_spectrum(590, 0.05, 0.4)),
        ("Ivory Black", np.full(len(WAVELENGTHS), 0.03)),
    ]
    return [Paint(PaintId("Acme", number), name, ReflectanceSpectrum(np.clip(data, 0, 1)))
            for number, (name, data) in enumerate(specs, start=1)]


@pytest.fixture
def palette_dataset(palette_paints):
    white = Paint(PaintId("Bolt", 100), "Chinese White", ReflectanceSpectrum(np.full(len(WAVELENGTHS), 0.88)))
    oil = Paint(PaintId("Oilco", 7), "Flake White", ReflectanceSpectrum(np.full(len(WAVELENGTHS), 0.85)),
                paint_type="oil")
    sets = [StoreBoughtPaintSet("Acme", "Primaries", "watercolor", (1, 3, 6)),
            StoreBoughtPaintSet("Oilco", "Starter", "oil", (7,))]
    return ReflectanceDataset(palette_paints + [white, oil], sets, version="test")


@pytest.fixture
def watercolor_ids(palette_paints):
    return [p.id for p in palette_paints]


@pytest.fixture
def color_space():
    return ColorSpace()


@pytest.fixture
def small_config():
    return MixerConfig(max_paints=2, ratio_steps=6, max_results=3)


@pytest.fixture
def cache():
    return MixCache(max_size=10_000)
