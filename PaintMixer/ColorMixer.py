from typing import Iterable, List, Mapping, Optional, Sequence, Union

from PaintMixer.ColorMath.KubelkaMunk import SpectralMixer
from PaintMixer.ColorSpace import ColorSpace
from PaintMixer.Config import MixerConfig
from PaintMixer.MixCache import MixCache
from PaintMixer.MixSearch import CancellationToken, MixSearchEngine, ProgressCallback
from PaintMixer.ReflectanceDataset import ReflectanceDataset
from PaintMixer.Utils.CustomTypes import CacheEntry, MixRatio, PaintId, PaintMix, PaintSet, ResultColor, TargetColor
from PaintMixer.Utils.Hash import MixFingerprint, TargetKey


Pool = Union[PaintSet, Iterable[PaintId]]
Ratios = Union[MixRatio, Mapping[PaintId, float]]


def _PoolIds(paint_set: Optional[Pool]) -> Optional[List[PaintId]]:
    if paint_set is None:
        return None
    if isinstance(paint_set, PaintSet):
        return list(paint_set.paint_ids)
    return [PaintId.parse(p) for p in paint_set]


class ColorMixer:
    """
    Query interface used by the UI: ranked mixes for a target color, and the predicted
    color of mixes the painter adjusts by hand.
    """

    def __init__(self, dataset: ReflectanceDataset, config: Optional[MixerConfig] = None,
                 cache: Optional[MixCache] = None):
        self.config = config if config is not None else MixerConfig()
        self.dataset = dataset
        self.color_space = ColorSpace(self.config.illuminant, self.config.observer, self.config.delta_e_method)
        self.mixer = SpectralMixer(dataset.paints)
        self.cache = cache if cache is not None else MixCache(self.config.cache_size, self.config.cache_max_age)
        self.search = MixSearchEngine(dataset, self.color_space, self.mixer, self.cache, self.config)

    def target_from_hex(self, hex_color: str) -> TargetColor:
        return self.color_space.target_from_hex(hex_color)

    def target_from_rgb(self, rgb: Sequence[int]) -> TargetColor:
        return self.color_space.target_from_rgb(rgb)

    def find_best_mixes(self, target: Union[TargetColor, Sequence[float]], paint_set: Pool,
                        max_results: Optional[int] = None, cancel: Optional[CancellationToken] = None,
                        progress: Optional[ProgressCallback] = None) -> List[PaintMix]:
        """
        Mixes of the paint set's paints closest to the target, best first.

        :raises InputError: the paint set is empty or has paints missing from the dataset
        :raises SearchCancelled: the search was cancelled, see MixSearchEngine.find_best_mixes
        """
        return self.search.find_best_mixes(target, _PoolIds(paint_set), max_results, cancel, progress)

    def predict_mix_color(self, ratios: Ratios, paint_set: Optional[Pool] = None) -> ResultColor:
        """
        Predicted color of mixing paints at the given ratios, resolved to 1e-6 like the cache keys.

        :param ratios: weights summing to 1
        :param paint_set: when given, every paint in the ratios must belong to it
        :raises InputError: bad ratios, unknown paints or paints outside the paint set
        """
        ratio = self.mixer.validate(ratios, _PoolIds(paint_set))
        fingerprint = MixFingerprint(ratio)
        entry = self.cache.get_or_compute(fingerprint, lambda: CacheEntry(
            self.color_space.result_colors(self.mixer.mix_fingerprints([fingerprint]))[0]))
        return entry.color

    def evaluate_mix(self, ratios: Ratios, target: Union[TargetColor, Sequence[float]],
                     paint_set: Optional[Pool] = None) -> PaintMix:
        """The mix with its predicted color and its distance to the target."""
        if not isinstance(target, TargetColor):
            target = TargetColor(tuple(target))
        ratio = self.mixer.validate(ratios, _PoolIds(paint_set))

        def compute() -> CacheEntry:
            color = self.predict_mix_color(ratio)
            return CacheEntry(color, self.color_space.distance(color.lab, target.lab))

        entry = self.cache.get_or_compute(MixFingerprint(ratio), compute, target_key=TargetKey(target))
        return PaintMix(ratio=ratio, color=entry.color, distance=entry.distance)

    def paint_color(self, paint_id: PaintId) -> ResultColor:
        paint = self.dataset[paint_id]
        return self.predict_mix_color(MixRatio({paint.id: 1.0}))
