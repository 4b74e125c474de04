from functools import lru_cache

import numpy as np
import numpy.typing as npt

from colour import MSDS_CMFS

from PaintMixer.Observer.Spectra import NUM_BANDS, WAVELENGTHS

DEFAULT_OBSERVER = "CIE 1931 2 Degree Standard Observer"


class StandardObserver:
    """
    Colour-matching functions of a CIE standard observer sampled on the 36-band grid.

        name (str): name of the observer in the colour library's MSDS_CMFS.
        cmfs (npt.NDArray): 36x3 array holding x-bar, y-bar and z-bar.
    """

    def __init__(self, name: str, cmfs: npt.NDArray):
        cmfs = np.array(cmfs, dtype=float)
        if cmfs.shape != (NUM_BANDS, 3):
            raise ValueError(f"Colour-matching functions must be a {NUM_BANDS}x3 array, got {cmfs.shape}")
        cmfs.setflags(write=False)
        self.name = name
        self.cmfs = cmfs

    @staticmethod
    @lru_cache(maxsize=None)
    def get(name: str = DEFAULT_OBSERVER) -> "StandardObserver":
        cmfs = MSDS_CMFS.get(name)
        if cmfs is None:
            raise ValueError(f"Observer {name} not found.")
        return StandardObserver(name, np.asarray(cmfs[WAVELENGTHS], dtype=float))

    def __repr__(self) -> str:
        return f"StandardObserver({self.name!r})"
