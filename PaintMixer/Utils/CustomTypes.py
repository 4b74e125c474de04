import math
from dataclasses import dataclass, field
from fractions import Fraction
from functools import cached_property, reduce
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from PaintMixer.ColorMath import Conversion
from PaintMixer.Observer.Observer import StandardObserver
from PaintMixer.Observer.Spectra import Illuminant, ReflectanceSpectrum, WAVELENGTHS
from PaintMixer.Utils.Errors import InputError


@dataclass(frozen=True, order=True)
class PaintId:
    """
    Identity of a paint: the brand and the manufacturer's color number within that brand.
    """
    brand: str
    number: int

    def __str__(self) -> str:
        return f"{self.brand}:{self.number}"

    @staticmethod
    def parse(text: Union[str, "PaintId"]) -> "PaintId":
        if isinstance(text, PaintId):
            return text
        brand, sep, number = str(text).rpartition(":")
        if not sep or not brand:
            raise InputError(f"Paint id must look like 'brand:number', got {text!r}")
        try:
            return PaintId(brand, int(number))
        except ValueError:
            raise InputError(f"Paint id must look like 'brand:number', got {text!r}") from None


@dataclass(frozen=True)
class Paint:
    """
    A paint from the reflectance dataset.

        id (PaintId): brand and number.
        name (str): the manufacturer's color name.
        spectrum (ReflectanceSpectrum): measured reflectance.
        paint_type (str): e.g. watercolor, oil, acrylic.
        tinting_strength (Optional[float]): relative tinting strength, None when unknown.
    """
    id: PaintId
    name: str
    spectrum: ReflectanceSpectrum = field(compare=False)
    paint_type: str = "watercolor"
    tinting_strength: Optional[float] = None

    def __post_init__(self):
        if self.tinting_strength is not None and not (math.isfinite(self.tinting_strength) and self.tinting_strength > 0):
            raise InputError(f"Tinting strength of {self.id} must be a positive number")

    @cached_property
    def rgb(self) -> Tuple[int, int, int]:
        """Display sRGB of the paint under D65 and the CIE 1931 2 degree observer."""
        illuminant, observer = Illuminant.get("D65"), StandardObserver.get()
        xyz = Conversion.SpectrumToXYZ(self.spectrum, illuminant, observer)
        rgb, _ = Conversion.XYZToSRGB(xyz, Conversion.ReferenceWhite(illuminant, observer))
        return int(rgb[0]), int(rgb[1]), int(rgb[2])

    @property
    def hex(self) -> str:
        return Conversion.RGBToHex(self.rgb)

    @property
    def label(self) -> str:
        # short manufacturer numbers are shown zero padded, as on the tubes
        if self.id.number < 1000:
            return f"{self.id.number:03d} {self.name}"
        return self.name


class MixRatio(Mapping[PaintId, float]):
    """
    Immutable mapping from paint to its share of a mix.

    Weights are non-negative and sum to 1 within TOLERANCE. Paints with a zero weight are
    dropped and the remaining items are kept in paint id order, so equal mixes compare equal.
    """

    TOLERANCE = 1e-6

    def __init__(self, weights: Union[Mapping[PaintId, float], Iterable[Tuple[PaintId, float]]]):
        items: Dict[PaintId, float] = {}
        pairs = weights.items() if isinstance(weights, Mapping) else weights
        for pid, weight in pairs:
            pid = PaintId.parse(pid)
            weight = float(weight)
            if not math.isfinite(weight) or weight < 0:
                raise InputError(f"Ratio of {pid} must be a non-negative number, got {weight}")
            if pid in items:
                raise InputError(f"Paint {pid} appears twice in the ratios")
            items[pid] = weight
        if not items:
            raise InputError("A mix needs at least one paint")
        total = sum(items.values())
        if abs(total - 1) > self.TOLERANCE:
            raise InputError(f"Ratios must sum to 1, got {total:.9g}")
        self._items: Tuple[Tuple[PaintId, float], ...] = tuple(sorted((p, w) for p, w in items.items() if w > 0))
        if not self._items:
            raise InputError("A mix needs at least one paint with a positive ratio")

    @classmethod
    def from_parts(cls, parts: Mapping[PaintId, float]) -> "MixRatio":
        """Build a ratio from relative amounts, e.g. {a: 1, b: 2} for one part a to two parts b."""
        parts = {PaintId.parse(p): float(v) for p, v in parts.items()}
        if any(not math.isfinite(v) or v < 0 for v in parts.values()):
            raise InputError("Parts must be non-negative numbers")
        total = sum(parts.values())
        if total <= 0:
            raise InputError("At least one paint needs a positive number of parts")
        return cls({p: v / total for p, v in parts.items()})

    @property
    def paint_ids(self) -> Tuple[PaintId, ...]:
        return tuple(p for p, _ in self._items)

    @property
    def weights(self) -> npt.NDArray:
        return np.array([w for _, w in self._items])

    def parts(self, max_denominator: int = 1000) -> Dict[PaintId, int]:
        """Smallest whole numbers of parts approximating the ratios, e.g. {a: 1, b: 2}."""
        fractions = [Fraction(w).limit_denominator(max_denominator) for _, w in self._items]
        denominator = reduce(lambda a, b: a * b // math.gcd(a, b), (f.denominator for f in fractions), 1)
        counts = [int(f * denominator) for f in fractions]
        divisor = reduce(math.gcd, counts)
        return {pid: c // divisor for (pid, _), c in zip(self._items, counts)}

    def items(self):
        return self._items

    def __getitem__(self, key: PaintId) -> float:
        for pid, weight in self._items:
            if pid == key:
                return weight
        raise KeyError(key)

    def __iter__(self) -> Iterator[PaintId]:
        return iter(self.paint_ids)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other) -> bool:
        if isinstance(other, MixRatio):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        inner = ", ".join(f"{pid}: {w:.4g}" for pid, w in self._items)
        return f"MixRatio({{{inner}}})"

    def to_dict(self) -> Dict[str, float]:
        return {str(pid): w for pid, w in self._items}


@dataclass(frozen=True)
class ResultColor:
    """
    Predicted color of a paint or mix.

        lab (Tuple[float, float, float]): CIE L*a*b*.
        rgb (Tuple[int, int, int]): display sRGB, clamped to [0, 255].
        out_of_gamut (bool): True when the sRGB values had to be clamped.
        xyz (Tuple[float, float, float]): CIE XYZ, Y of a perfect white is 1.
    """
    lab: Tuple[float, float, float]
    rgb: Tuple[int, int, int]
    out_of_gamut: bool = False
    xyz: Optional[Tuple[float, float, float]] = None

    @property
    def hex(self) -> str:
        return Conversion.RGBToHex(self.rgb)

    def to_dict(self) -> dict:
        return {"lab": list(self.lab), "rgb": list(self.rgb), "out_of_gamut": self.out_of_gamut,
                "xyz": list(self.xyz) if self.xyz is not None else None}

    @staticmethod
    def from_dict(data: Mapping) -> "ResultColor":
        xyz = data.get("xyz")
        return ResultColor(lab=tuple(float(v) for v in data["lab"]),
                           rgb=tuple(int(v) for v in data["rgb"]),
                           out_of_gamut=bool(data.get("out_of_gamut", False)),
                           xyz=tuple(float(v) for v in xyz) if xyz is not None else None)


@dataclass(frozen=True)
class PaintMix:
    """
    A combination of paints with its predicted color and, when computed against a target,
    the perceptual distance to it.
    """
    ratio: MixRatio
    color: ResultColor
    distance: Optional[float] = None

    @property
    def paint_ids(self) -> Tuple[PaintId, ...]:
        return self.ratio.paint_ids

    @property
    def paint_count(self) -> int:
        return len(self.ratio)

    def to_dict(self) -> dict:
        return {"ratio": self.ratio.to_dict(), "color": self.color.to_dict(), "distance": self.distance}

    @staticmethod
    def from_dict(data: Mapping) -> "PaintMix":
        distance = data.get("distance")
        return PaintMix(ratio=MixRatio(data["ratio"]),
                        color=ResultColor.from_dict(data["color"]),
                        distance=float(distance) if distance is not None else None)


@dataclass(frozen=True)
class TargetColor:
    """The color a painter wants to reproduce, in CIE L*a*b*."""
    lab: Tuple[float, float, float]

    def __post_init__(self):
        lab = tuple(float(v) for v in self.lab)
        if len(lab) != 3 or not all(math.isfinite(v) for v in lab):
            raise InputError(f"Target color must be three finite Lab values, got {self.lab!r}")
        object.__setattr__(self, "lab", lab)

    @staticmethod
    def from_lab(L: float, a: float, b: float) -> "TargetColor":
        return TargetColor((L, a, b))

    @staticmethod
    def from_rgb(rgb: Iterable[int], reference_white: Optional[npt.ArrayLike] = None) -> "TargetColor":
        """
        Target from an 8-bit sRGB color.

        :param rgb: red, green, blue in [0, 255]
        :param reference_white: XYZ of the white the Lab values are relative to, D65 when None
        """
        if reference_white is None:
            reference_white = Conversion.ReferenceWhite(Illuminant.get("D65"), StandardObserver.get())
        xyz = Conversion.SRGBToXYZ(list(rgb), reference_white)
        return TargetColor(tuple(Conversion.XYZToLab(xyz, reference_white)))

    @staticmethod
    def from_hex(hex_color: str, reference_white: Optional[npt.ArrayLike] = None) -> "TargetColor":
        return TargetColor.from_rgb(Conversion.HexToRGB(hex_color), reference_white)


@dataclass(frozen=True)
class StoreBoughtPaintSet:
    """A set of colors sold together by a brand."""
    brand: str
    name: str
    paint_type: str
    numbers: Tuple[int, ...]


@dataclass
class PaintSetDefinition:
    """
    What the painter selected, as saved by the storage collaborator.

        paint_type (str): the paint type the set belongs to, the storage key.
        brands (List[str]): brands the painter owns paints from.
        store_bought_set (Optional[Tuple[str, str]]): (brand, set name) of a store-bought set, or None for a custom set.
        colors (Dict[str, List[int]]): the paint numbers owned per brand.
        timestamp (float): when the definition was last saved.
    """
    paint_type: str
    brands: List[str] = field(default_factory=list)
    store_bought_set: Optional[Tuple[str, str]] = None
    colors: Dict[str, List[int]] = field(default_factory=dict)
    timestamp: float = 0.0

    def to_dict(self) -> dict:
        return {"type": self.paint_type, "brands": list(self.brands),
                "store_bought_set": list(self.store_bought_set) if self.store_bought_set else None,
                "colors": {brand: list(numbers) for brand, numbers in self.colors.items()},
                "timestamp": self.timestamp}

    @staticmethod
    def from_dict(data: Mapping) -> "PaintSetDefinition":
        store_bought = data.get("store_bought_set")
        return PaintSetDefinition(paint_type=data["type"],
                                  brands=list(data.get("brands", [])),
                                  store_bought_set=tuple(store_bought) if store_bought else None,
                                  colors={brand: [int(n) for n in numbers]
                                          for brand, numbers in data.get("colors", {}).items()},
                                  timestamp=float(data.get("timestamp", 0.0)))


@dataclass(frozen=True)
class PaintSet:
    """The paints a painter owns, grouped by brand, all of one paint type."""
    paint_type: str
    paints_by_brand: Mapping[str, Tuple[PaintId, ...]]

    @property
    def paint_ids(self) -> Tuple[PaintId, ...]:
        return tuple(sorted(pid for ids in self.paints_by_brand.values() for pid in ids))

    def __len__(self) -> int:
        return len(self.paint_ids)

    def __contains__(self, paint_id: PaintId) -> bool:
        return paint_id in self.paint_ids


@dataclass(frozen=True)
class CacheEntry:
    """A computed mix color, with its distance when it was scored against a target."""
    color: ResultColor
    distance: Optional[float] = None


@dataclass
class DatasetReport:
    """Outcome of loading or calculating a dataset: how many paints loaded and why others were skipped."""
    loaded: int = 0
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.skipped


__all__ = ["WAVELENGTHS", "PaintId", "Paint", "MixRatio", "ResultColor", "PaintMix", "TargetColor",
           "StoreBoughtPaintSet", "PaintSetDefinition", "PaintSet", "CacheEntry", "DatasetReport"]
