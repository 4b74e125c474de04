from typing import Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

from PaintMixer.Observer.Spectra import ReflectanceSpectrum
from PaintMixer.Utils.CustomTypes import MixRatio, Paint, PaintId
from PaintMixer.Utils.Errors import InputError
from PaintMixer.Utils.Hash import Fingerprint, FingerprintWeights

# K/S of a band that reflects nothing. Finite so that mixing stays well defined.
KS_MAX = 1e8


def ReflectanceToKS(R: npt.ArrayLike) -> npt.NDArray:
    """
    Kubelka-Munk absorption/scattering ratio K/S = (1 - R)^2 / 2R for every band.

    R == 0 maps to KS_MAX instead of dividing by zero; R == 1 maps to 0.
    """
    R = np.clip(np.asarray(R, dtype=float), 0, 1)
    ks = np.divide((1 - R) ** 2, 2 * R, out=np.full_like(R, KS_MAX), where=R > 0)
    return np.minimum(ks, KS_MAX)


def KSToReflectance(ks: npt.ArrayLike) -> npt.NDArray:
    """
    Invert K/S to reflectance, R = 1 + K/S - sqrt((K/S)^2 + 2 K/S).

    Evaluated as 1 / (1 + Q + sqrt(Q^2 + 2Q)), which is the same value without the
    cancellation error of the subtraction when Q is large.
    """
    Q = np.clip(np.asarray(ks, dtype=float), 0, KS_MAX)
    R = 1 / (1 + Q + np.sqrt(Q ** 2 + 2 * Q))
    return np.clip(R, 0, 1)


def EffectiveWeights(weights: npt.ArrayLike, strengths: npt.ArrayLike) -> npt.NDArray:
    """
    Scale mix ratios by tinting strength and renormalize each row to sum to 1.

    :param weights: (..., n) mix ratios
    :param strengths: (n,) tinting strength per paint, 1 for paints without one
    """
    w = np.asarray(weights, dtype=float) * np.asarray(strengths, dtype=float)
    return w / np.sum(w, axis=-1, keepdims=True)


def MixKS(weights: npt.ArrayLike, ks: npt.ArrayLike) -> npt.NDArray:
    """
    Linear combination of K/S curves.

    :param weights: (m, n) effective weights, one row per mix
    :param ks: (n, 36) K/S curve per paint
    :return: (m, 36) mixed K/S
    """
    w = np.asarray(weights, dtype=float)
    ks = np.asarray(ks, dtype=float)
    # broadcast sum so each mix row does not depend on the batch it is computed in
    return np.sum(w[:, :, np.newaxis] * ks[np.newaxis, :, :], axis=1)


class SpectralMixer:
    """
    Predicts the reflectance of a physical paint mixture with the single-constant
    Kubelka-Munk model, band by band.

    Tinting strength, when a paint has one, multiplies that paint's ratio before the K/S
    curves are combined; the weights are then renormalized so a single paint still
    reproduces its own spectrum. Paints without a tinting strength count as 1.
    """

    def __init__(self, paints: Union[Mapping[PaintId, Paint], Iterable[Paint]]):
        if isinstance(paints, Mapping):
            self._paints = dict(paints)
        else:
            self._paints = {paint.id: paint for paint in paints}
        self._ks = {pid: ReflectanceToKS(paint.spectrum.data) for pid, paint in self._paints.items()}
        self._ids = {str(pid): pid for pid in self._paints}

    def ks(self, paint_id: PaintId) -> npt.NDArray:
        return self._ks[paint_id]

    def validate(self, ratios: Union[MixRatio, Mapping[PaintId, float]],
                 pool: Optional[Iterable[PaintId]] = None) -> MixRatio:
        if not isinstance(ratios, MixRatio):
            ratios = MixRatio(ratios)
        unknown = [pid for pid in ratios if pid not in self._paints]
        if unknown:
            raise InputError(f"Unknown paint id(s): {', '.join(str(p) for p in unknown)}")
        if pool is not None:
            allowed = set(pool)
            outside = [pid for pid in ratios if pid not in allowed]
            if outside:
                raise InputError(f"Paint id(s) not in the paint pool: {', '.join(str(p) for p in outside)}")
        return ratios

    def mix(self, ratios: Union[MixRatio, Mapping[PaintId, float]],
            pool: Optional[Iterable[PaintId]] = None) -> ReflectanceSpectrum:
        """
        Predict the reflectance spectrum of mixing paints at the given ratios.

        Args:
            ratios (MixRatio | Mapping[PaintId, float]): weights summing to 1 within 1e-6.
            pool (Optional[Iterable[PaintId]], optional): restrict the ratios to these paints. Defaults to None.

        Raises:
            InputError: ratios do not sum to 1, are negative, or reference an unknown or excluded paint.

        Returns:
            ReflectanceSpectrum: the predicted spectrum of the mixture.
        """
        ratios = self.validate(ratios, pool)
        paints = [self._paints[pid] for pid in ratios.paint_ids]
        return ReflectanceSpectrum(self.mix_weights(paints, ratios.weights[np.newaxis, :])[0], warn=False)

    def mix_weights(self, paints: Sequence[Paint], weights: npt.ArrayLike) -> npt.NDArray:
        """
        Batch prediction for a fixed list of paints.

        :param paints: the n paints being mixed
        :param weights: (m, n) ratios, each row summing to 1
        :return: (m, 36) predicted reflectances
        """
        weights = np.atleast_2d(np.asarray(weights, dtype=float))
        if weights.shape[1] != len(paints):
            raise InputError(f"Expected {len(paints)} weights per mix, got {weights.shape[1]}")
        strengths = np.array([p.tinting_strength if p.tinting_strength is not None else 1.0 for p in paints])
        ks = np.stack([self._ks[p.id] for p in paints])
        return KSToReflectance(MixKS(EffectiveWeights(weights, strengths), ks))

    def mix_fingerprints(self, fingerprints: Sequence[Fingerprint]) -> npt.NDArray:
        """
        Batch prediction from mix fingerprints, at the ratios the fingerprints stand for.

        :param fingerprints: fingerprints that all name the same paints
        :return: (m, 36) predicted reflectances
        """
        if not fingerprints:
            raise InputError("No mixes to predict")
        keys, _ = FingerprintWeights(fingerprints[0])
        weights = []
        for fingerprint in fingerprints:
            fingerprint_keys, row = FingerprintWeights(fingerprint)
            if fingerprint_keys != keys:
                raise InputError("All fingerprints of a batch must name the same paints")
            weights.append(row)
        try:
            paints = [self._paints[self._ids[key]] for key in keys]
        except KeyError as e:
            raise InputError(f"Unknown paint id {e.args[0]}") from None
        return self.mix_weights(paints, np.array(weights))
