from typing import Optional, Tuple, Union

import numpy as np
import numpy.typing as npt

from colour import XYZ_to_Lab, XYZ_to_sRGB, XYZ_to_xy, cctf_decoding, cctf_encoding, sRGB_to_XYZ, delta_E, notation

from PaintMixer.Observer.Spectra import NUM_BANDS, Illuminant, ReflectanceSpectrum
from PaintMixer.Observer.Observer import StandardObserver
from PaintMixer.Utils.Errors import InputError

# CIE 1976 lightness constants
CIE_EPSILON = 216 / 24389
CIE_KAPPA = 24389 / 27

# ΔE formulas that are symmetric in their arguments
SYMMETRIC_DELTA_E_METHODS = ("CIE 1976", "CIE 2000")

GAMUT_TOLERANCE = 1e-6

SpectrumLike = Union[ReflectanceSpectrum, npt.ArrayLike]


def _reflectances(spectrum: SpectrumLike) -> npt.NDArray:
    if isinstance(spectrum, ReflectanceSpectrum):
        return spectrum.data
    arr = np.asarray(spectrum, dtype=float)
    if arr.ndim == 0 or arr.shape[-1] != NUM_BANDS:
        raise InputError(f"Reflectances must have {NUM_BANDS} samples in the last dimension, got shape {arr.shape}")
    return arr


def _triplets(values: npt.ArrayLike, name: str) -> npt.NDArray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0 or arr.shape[-1] != 3:
        raise InputError(f"{name} must have 3 components in the last dimension, got shape {arr.shape}")
    return arr


def TristimulusWeights(illuminant: Illuminant, observer: StandardObserver) -> npt.NDArray:
    """
    Per-band weights W such that XYZ = R @ W, normalized so that a perfect reflector has Y = 1.

    :param illuminant: Illuminant sampled on the band grid
    :param observer: StandardObserver sampled on the band grid
    :return: 36x3 weight matrix
    """
    weighted = illuminant.data[:, np.newaxis] * observer.cmfs
    return weighted / np.sum(weighted[:, 1])


def SpectrumToXYZ(spectrum: SpectrumLike, illuminant: Illuminant, observer: StandardObserver) -> npt.NDArray:
    """
    Integrate reflectance x illuminant power x colour-matching functions over the 36 bands.

    Accepts a single spectrum or a stack of them (..., 36). The result is normalized by the
    illuminant's integral over y-bar, so a perfect white reflector has Y = 1.
    """
    weights = TristimulusWeights(illuminant, observer)
    R = _reflectances(spectrum)
    # elementwise sum keeps every row independent of the batch it is computed in
    return np.sum(R[..., :, np.newaxis] * weights, axis=-2)


def ReferenceWhite(illuminant: Illuminant, observer: StandardObserver) -> npt.NDArray:
    """XYZ of a perfect reflecting diffuser under the illuminant."""
    return SpectrumToXYZ(np.ones(NUM_BANDS), illuminant, observer)


def CIELightness(Y: npt.ArrayLike, Y_n: float = 1.0) -> npt.NDArray:
    """CIE 1976 L* from luminance, with the cube-root / linear piecewise function."""
    y = np.asarray(Y, dtype=float) / Y_n
    f = np.where(y > CIE_EPSILON, np.cbrt(y), (CIE_KAPPA * y + 16) / 116)
    return 116 * f - 16


def XYZToLab(xyz: npt.ArrayLike, reference_white: npt.ArrayLike) -> npt.NDArray:
    """
    Convert CIE XYZ to CIE L*a*b* relative to a reference white.

    :param xyz: XYZ values in the [0, 1] domain, shape (..., 3)
    :param reference_white: XYZ of the reference white
    :return: Lab values, L* in [0, 100]
    """
    xyz = _triplets(xyz, "XYZ")
    white = _triplets(reference_white, "Reference white")
    # colour expects the reference white at Y = 1
    return XYZ_to_Lab(xyz / white[1], illuminant=XYZ_to_xy(white))


def _white_balance(white: npt.NDArray) -> npt.NDArray:
    """Linear sRGB of the reference white after adaptation to D65."""
    return XYZ_to_sRGB(white / white[1], illuminant=XYZ_to_xy(white), apply_cctf_encoding=False)


def XYZToSRGB(xyz: npt.ArrayLike, reference_white: Optional[npt.ArrayLike] = None) -> Tuple[npt.NDArray, npt.NDArray]:
    """
    Convert XYZ to 8-bit sRGB.

    When a reference white is given, XYZ is adapted to D65 and the linear RGB is divided by
    the RGB of the reference white, so that white maps to exactly (1, 1, 1). The gamut test is
    done on the linear values, then gamma encoding is applied and each channel is clamped to [0, 255].

    Returns:
        Tuple[npt.NDArray, npt.NDArray]: integer RGB values and a boolean out-of-gamut flag per color.
    """
    xyz = _triplets(xyz, "XYZ")
    if reference_white is None:
        linear = XYZ_to_sRGB(xyz, apply_cctf_encoding=False)
    else:
        white = _triplets(reference_white, "Reference white")
        linear = XYZ_to_sRGB(xyz / white[1], illuminant=XYZ_to_xy(white),
                             apply_cctf_encoding=False) / _white_balance(white)
    out_of_gamut = np.any((linear < -GAMUT_TOLERANCE) | (linear > 1 + GAMUT_TOLERANCE), axis=-1)
    rgb = cctf_encoding(np.clip(linear, 0, 1), function="sRGB")
    rgb_255 = np.round(np.clip(rgb, 0, 1) * 255).astype(int)
    return rgb_255, out_of_gamut


def SRGBToXYZ(rgb: npt.ArrayLike, reference_white: Optional[npt.ArrayLike] = None) -> npt.NDArray:
    """Convert 8-bit sRGB to XYZ, adapted to the reference white if one is given. Inverse of XYZToSRGB."""
    rgb = _triplets(rgb, "RGB")
    if np.any(rgb < 0) or np.any(rgb > 255):
        raise InputError("RGB channels must be within [0, 255]")
    if reference_white is None:
        return sRGB_to_XYZ(rgb / 255)
    white = _triplets(reference_white, "Reference white")
    linear = cctf_decoding(rgb / 255, function="sRGB") * _white_balance(white)
    return sRGB_to_XYZ(linear, illuminant=XYZ_to_xy(white), apply_cctf_decoding=False) * white[1]


def LabDistance(a: npt.ArrayLike, b: npt.ArrayLike, method: str = "CIE 2000") -> Union[float, npt.NDArray]:
    """
    Perceptual color difference between Lab colors.

    Only symmetric formulas are accepted, so LabDistance(a, b) == LabDistance(b, a),
    and the distance of a color to itself is 0.
    """
    if method not in SYMMETRIC_DELTA_E_METHODS:
        raise ValueError(f"Unsupported color difference method {method}, use one of {SYMMETRIC_DELTA_E_METHODS}")
    a = _triplets(a, "Lab")
    b = _triplets(b, "Lab")
    d = delta_E(a, b, method=method)
    if np.ndim(d) == 0:
        return float(d)
    return np.asarray(d, dtype=float)


def RGBToHex(rgb: npt.ArrayLike) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(int(c) for c in rgb))


def HexToRGB(hex_color: str) -> Tuple[int, int, int]:
    text = hex_color.strip()
    if not text.startswith("#"):
        text = "#" + text
    if len(text) != 7:
        raise InputError(f"Invalid hex color {hex_color}")
    try:
        int(text[1:], 16)
    except ValueError:
        raise InputError(f"Invalid hex color {hex_color}") from None
    rgb = np.round(notation.HEX_to_RGB(text) * 255).astype(int)
    return int(rgb[0]), int(rgb[1]), int(rgb[2])
