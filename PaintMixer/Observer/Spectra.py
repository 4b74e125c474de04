from functools import lru_cache
from typing import Iterator, Optional, Union

import numpy as np
import numpy.typing as npt
import warnings

from colour import SDS_ILLUMINANTS, SDS_LIGHT_SOURCES

from PaintMixer.Utils.Errors import InputError

WAVELENGTH_START = 380
WAVELENGTH_END = 730
WAVELENGTH_STEP = 10
WAVELENGTHS: npt.NDArray = np.arange(WAVELENGTH_START, WAVELENGTH_END + 1, WAVELENGTH_STEP)
NUM_BANDS = len(WAVELENGTHS)  # 36


def _as_band_array(data: Union[npt.ArrayLike, "ReflectanceSpectrum"]) -> npt.NDArray:
    if isinstance(data, ReflectanceSpectrum):
        return data.data
    arr = np.asarray(data, dtype=float)
    if arr.ndim != 1 or arr.shape[0] != NUM_BANDS:
        raise InputError(f"Expected {NUM_BANDS} samples from {WAVELENGTH_START} to {WAVELENGTH_END}nm, "
                         f"got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InputError("Samples must be finite numbers")
    return arr


class ReflectanceSpectrum:
    def __init__(self, data: npt.ArrayLike, wavelengths: Optional[npt.ArrayLike] = None, warn: bool = True):
        """
        A reflectance spectrum sampled every 10nm from 380nm to 730nm.

        Args:
            data (npt.ArrayLike): the 36 reflectance samples.
            wavelengths (Optional[npt.ArrayLike], optional): if given, must equal the fixed grid. Defaults to None.
            warn (bool, optional): warn when samples outside [0, 1] are clipped. Defaults to True.
        """
        if wavelengths is not None and not np.array_equal(np.asarray(wavelengths), WAVELENGTHS):
            raise InputError("Wavelengths must be 380nm to 730nm in 10nm steps. Resample the data first.")
        arr = np.array(_as_band_array(data), dtype=float)
        if not (np.all(arr >= 0) and np.all(arr <= 1)):
            if warn:
                warnings.warn("Reflectance has values not between 0 and 1. Clipping.")
            arr = np.clip(arr, 0, 1)
        arr.setflags(write=False)
        self._data = arr

    @property
    def data(self) -> npt.NDArray:
        return self._data

    @property
    def wavelengths(self) -> npt.NDArray:
        return WAVELENGTHS

    def array(self) -> npt.NDArray:
        """Get the column stack of the wavelengths and reflectance samples.

        Returns:
            npt.NDArray: a 36x2 array.
        """
        return np.column_stack((WAVELENGTHS, self._data))

    def interpolated_value(self, wavelength: float) -> float:
        """Linearly interpolate the reflectance at the given wavelength, holding the boundary values outside the grid.

        Args:
            wavelength (float): wavelength in nm.

        Returns:
            float: the interpolated reflectance.
        """
        return float(np.interp(wavelength, WAVELENGTHS, self._data))

    def allclose(self, other: "ReflectanceSpectrum", atol: float = 1e-6) -> bool:
        return bool(np.allclose(self._data, other.data, rtol=0, atol=atol))

    def __getitem__(self, wavelength: float) -> float:
        return self.interpolated_value(wavelength)

    def __len__(self) -> int:
        return NUM_BANDS

    def __iter__(self) -> Iterator[float]:
        return iter(self._data.tolist())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ReflectanceSpectrum):
            return NotImplemented
        return bool(np.array_equal(self._data, other.data))

    def __hash__(self) -> int:
        return hash(self._data.tobytes())

    def __repr__(self) -> str:
        return f"ReflectanceSpectrum({np.array2string(self._data, precision=3, separator=', ')})"


class Illuminant:
    def __init__(self, name: str, data: npt.ArrayLike):
        """Relative spectral power of a light source on the 36-band grid, normalized to a peak of 1."""
        arr = np.array(_as_band_array(data), dtype=float)
        if np.any(arr < 0) or np.max(arr) <= 0:
            raise InputError(f"Illuminant {name} must have non-negative power with a positive peak")
        arr = arr / np.max(arr)
        arr.setflags(write=False)
        self.name = name
        self.data = arr

    @staticmethod
    @lru_cache(maxsize=None)
    def get(name: str) -> "Illuminant":
        """Get the Illuminant corresponding to the given name.

        Args:
            name (str): the name of the illuminant in SDS_ILLUMINANTS or SDS_LIGHT_SOURCES of the colour library.

        Returns:
            Illuminant: the illuminant sampled on the 380-730nm grid.
        """
        light = SDS_ILLUMINANTS.get(name)
        if light is None:
            light = SDS_LIGHT_SOURCES.get(name)
            if light is None:
                raise ValueError(f"Illuminant {name} not found.")
        return Illuminant(name, np.asarray(light[WAVELENGTHS], dtype=float))

    def __repr__(self) -> str:
        return f"Illuminant({self.name!r})"
