from typing import Iterable, List, Tuple, Union

import numpy as np
import numpy.typing as npt

from PaintMixer.ColorMath import Conversion
from PaintMixer.Observer.Observer import DEFAULT_OBSERVER, StandardObserver
from PaintMixer.Observer.Spectra import Illuminant, ReflectanceSpectrum
from PaintMixer.Utils.CustomTypes import ResultColor, TargetColor


class ColorSpace:
    """
    Colorimetry of reflectances under one illuminant and one standard observer.

    Bundles the tristimulus weights, the reference white and the color difference formula
    so the mixer and the search evaluate every color the same way.
    """

    def __init__(self, illuminant: Union[str, Illuminant] = "D65",
                 observer: Union[str, StandardObserver] = DEFAULT_OBSERVER,
                 delta_e_method: str = "CIE 2000"):
        if isinstance(illuminant, str):
            illuminant = Illuminant.get(illuminant)
        if isinstance(observer, str):
            observer = StandardObserver.get(observer)
        if delta_e_method not in Conversion.SYMMETRIC_DELTA_E_METHODS:
            raise ValueError(f"Unsupported color difference method {delta_e_method}")
        self.illuminant = illuminant
        self.observer = observer
        self.delta_e_method = delta_e_method

        self.weights = Conversion.TristimulusWeights(illuminant, observer)
        self.weights.setflags(write=False)
        self.white_xyz = Conversion.ReferenceWhite(illuminant, observer)

    def to_xyz(self, reflectance: Union[ReflectanceSpectrum, npt.ArrayLike]) -> npt.NDArray:
        return Conversion.SpectrumToXYZ(reflectance, self.illuminant, self.observer)

    def to_lab(self, reflectance: Union[ReflectanceSpectrum, npt.ArrayLike]) -> npt.NDArray:
        return Conversion.XYZToLab(self.to_xyz(reflectance), self.white_xyz)

    def result_colors(self, reflectances: npt.ArrayLike) -> List[ResultColor]:
        """
        Predicted colors of a stack of reflectances.

        :param reflectances: (m, 36) array
        :return: one ResultColor per row
        """
        xyz = np.atleast_2d(self.to_xyz(np.atleast_2d(reflectances)))
        lab = Conversion.XYZToLab(xyz, self.white_xyz)
        rgb, out_of_gamut = Conversion.XYZToSRGB(xyz, self.white_xyz)
        return [ResultColor(lab=(float(l[0]), float(l[1]), float(l[2])),
                            rgb=(int(c[0]), int(c[1]), int(c[2])),
                            out_of_gamut=bool(g),
                            xyz=(float(x[0]), float(x[1]), float(x[2])))
                for l, c, g, x in zip(lab, rgb, out_of_gamut, xyz)]

    def result_color(self, reflectance: Union[ReflectanceSpectrum, npt.ArrayLike]) -> ResultColor:
        data = reflectance.data if isinstance(reflectance, ReflectanceSpectrum) else reflectance
        return self.result_colors(np.asarray(data, dtype=float)[np.newaxis, :])[0]

    def distance(self, a: npt.ArrayLike, b: npt.ArrayLike) -> Union[float, npt.NDArray]:
        return Conversion.LabDistance(a, b, self.delta_e_method)

    def target_from_rgb(self, rgb: Iterable[int]) -> TargetColor:
        return TargetColor.from_rgb(rgb, self.white_xyz)

    def target_from_hex(self, hex_color: str) -> TargetColor:
        return TargetColor.from_hex(hex_color, self.white_xyz)

    def lightness_range(self, reflectances: npt.ArrayLike) -> Tuple[float, float]:
        """
        Range of L* any Kubelka-Munk mix of the given paints can have.

        Mixed K/S is a convex combination of the paints' K/S and reflectance falls as K/S rises,
        so every band of a mix lies between the smallest and largest reflectance of the paints
        in that band. Y is a non-negative weighted sum of the bands, which bounds L*.
        """
        R = np.atleast_2d(np.asarray(reflectances, dtype=float))
        Y_low = float(np.min(R, axis=0) @ self.weights[:, 1])
        Y_high = float(np.max(R, axis=0) @ self.weights[:, 1])
        L = Conversion.CIELightness(np.array([Y_low, Y_high]), self.white_xyz[1])
        return float(L[0]), float(L[1])

    def distance_lower_bound(self, target_lab: npt.ArrayLike, lightness_range: Tuple[float, float]) -> float:
        """
        A value no larger than the distance from the target to any color with L* in the range.

        Both CIE 1976 and CIE 2000 differences are at least the lightness term alone; for CIE 2000
        that term is divided by S_L, whose largest value over the possible mean lightness is used.
        """
        L_t = float(np.asarray(target_lab, dtype=float)[0])
        low, high = lightness_range
        gap = max(low - L_t, L_t - high, 0.0)
        if gap == 0.0 or self.delta_e_method == "CIE 1976":
            return gap

        def S_L(L_bar: float) -> float:
            return 1 + 0.015 * (L_bar - 50) ** 2 / np.sqrt(20 + (L_bar - 50) ** 2)

        # S_L grows with |L_bar - 50|, so its maximum over the interval is at an end point
        largest_S_L = max(S_L((L_t + low) / 2), S_L((L_t + high) / 2))
        return gap / largest_S_L

    def __str__(self) -> str:
        return f"ColorSpace({self.illuminant.name}, {self.observer.name}, {self.delta_e_method})"
