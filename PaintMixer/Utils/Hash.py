import hashlib
from typing import Iterable, Mapping, Optional, Tuple, Union

import numpy.typing as npt

from PaintMixer.Utils.CustomTypes import MixRatio, PaintId, TargetColor

# ratios are compared at a resolution of 1e-6
RATIO_QUANTUM = 1_000_000
# target Lab values at a resolution of 1e-4
LAB_QUANTUM = 10_000

Fingerprint = Tuple[Tuple[str, int], ...]


def stable_hash(obj) -> int:
    """Returns a stable SHA-256 hash of a string representation of the input object."""
    obj_str = str(obj).encode('utf-8')
    return int(hashlib.sha256(obj_str).hexdigest(), 16)


def MixFingerprint(ratio: Union[MixRatio, Mapping[PaintId, float], Iterable[Tuple[PaintId, float]]]) -> Fingerprint:
    """
    Canonical cache key of a mix: sorted (paint id, quantized ratio) pairs.
    Paints whose ratio quantizes to zero are left out.
    """
    pairs = ratio.items() if isinstance(ratio, Mapping) else ratio
    quantized = ((str(pid), int(round(float(w) * RATIO_QUANTUM))) for pid, w in pairs)
    return tuple(sorted((pid, q) for pid, q in quantized if q > 0))


def FingerprintWeights(fingerprint: Fingerprint) -> Tuple[Tuple[str, ...], Tuple[float, ...]]:
    """
    Paint keys and ratios a fingerprint stands for, in fingerprint order.
    Colors cached under a fingerprint are computed from these ratios.
    """
    keys = tuple(key for key, _ in fingerprint)
    weights = tuple(q / RATIO_QUANTUM for _, q in fingerprint)
    return keys, weights


def TargetKey(target: Optional[Union[TargetColor, npt.ArrayLike]]) -> Optional[Tuple[int, int, int]]:
    if target is None:
        return None
    lab = target.lab if isinstance(target, TargetColor) else target
    L, a, b = (int(round(float(v) * LAB_QUANTUM)) for v in lab)
    return L, a, b


def MixId(ratio: MixRatio) -> str:
    """Short stable identifier of a mix, usable as a storage key."""
    return f"{stable_hash(MixFingerprint(ratio)):064x}"[:16]
