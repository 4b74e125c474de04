import bisect
import logging
import math
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import combinations
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt
from tqdm import tqdm

from PaintMixer.ColorMath.KubelkaMunk import SpectralMixer
from PaintMixer.ColorMath.Sampling import SimplexGrid
from PaintMixer.ColorSpace import ColorSpace
from PaintMixer.Config import MixerConfig
from PaintMixer.MixCache import MixCache
from PaintMixer.ReflectanceDataset import ReflectanceDataset
from PaintMixer.Utils.CustomTypes import CacheEntry, MixRatio, Paint, PaintId, PaintMix, TargetColor
from PaintMixer.Utils.Errors import InputError, NoMatchFound, SearchCancelled
from PaintMixer.Utils.Hash import MixFingerprint

logger = logging.getLogger(__name__)

# absorbs rounding between the lightness envelope and the mixed spectra
BOUND_SLACK = 1e-9

ProgressCallback = Callable[[int, int], None]
SortKey = Tuple[float, int, Tuple[PaintId, ...], Tuple[int, ...]]


class CancellationToken:
    """
    Cooperative cancellation flag shared between the caller and a running search.
    The search checks it between subsets of paints.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BestMixes:
    """
    The best `capacity` mixes seen so far, kept sorted.

    Mixes are ordered by distance to the target, then by the number of paints, then by
    paint ids and finally by their parts, so the order never depends on evaluation order.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._keys: List[SortKey] = []
        self._mixes: List[PaintMix] = []

    @property
    def full(self) -> bool:
        return len(self._keys) >= self.capacity

    @property
    def worst_distance(self) -> float:
        return self._keys[-1][0] if self.full else math.inf

    def accepts(self, key: SortKey) -> bool:
        return not self.full or key < self._keys[-1]

    def offer(self, key: SortKey, make_mix: Callable[[], PaintMix]) -> bool:
        if not self.accepts(key):
            return False
        index = bisect.bisect_left(self._keys, key)
        if index < len(self._keys) and self._keys[index] == key:
            return False
        self._keys.insert(index, key)
        self._mixes.insert(index, make_mix())
        if len(self._keys) > self.capacity:
            self._keys.pop()
            self._mixes.pop()
        return True

    def merge(self, other: "BestMixes") -> None:
        for key, mix in zip(other._keys, other._mixes):
            self.offer(key, lambda mix=mix: mix)

    def results(self) -> List[PaintMix]:
        return list(self._mixes)

    def __len__(self) -> int:
        return len(self._keys)


@dataclass
class SearchStats:
    subsets: int = 0
    evaluated: int = 0
    pruned: int = 0
    points: int = 0
    computed: int = 0


class MixSearchEngine:
    """
    Finds the mixes of owned paints whose predicted color is closest to a target.

    Every subset of 1 to `max_paints` paints is crossed with a simplex grid of ratios in steps
    of 1/`ratio_steps`. Once the best-N list is full, a subset is skipped when even the closest
    lightness any of its mixes can reach is farther from the target than the current N-th best.
    """

    def __init__(self, dataset: ReflectanceDataset, color_space: Optional[ColorSpace] = None,
                 mixer: Optional[SpectralMixer] = None, cache: Optional[MixCache] = None,
                 config: Optional[MixerConfig] = None):
        self.config = config if config is not None else MixerConfig()
        self.dataset = dataset
        self.color_space = color_space if color_space is not None else ColorSpace(
            self.config.illuminant, self.config.observer, self.config.delta_e_method)
        self.mixer = mixer if mixer is not None else SpectralMixer(dataset.paints)
        self.cache = cache if cache is not None else MixCache(self.config.cache_size, self.config.cache_max_age)

    def find_best_mixes(self, target: Union[TargetColor, Sequence[float]], pool: Iterable[PaintId],
                        max_results: Optional[int] = None, cancel: Optional[CancellationToken] = None,
                        progress: Optional[ProgressCallback] = None) -> List[PaintMix]:
        """
        Rank mixes of the pool's paints by their distance to the target.

        Args:
            target (TargetColor | Sequence[float]): the color to reproduce, as Lab.
            pool (Iterable[PaintId]): paints that may be used.
            max_results (Optional[int], optional): number of mixes to return. Defaults to the config's max_results.
            cancel (Optional[CancellationToken], optional): checked between subsets. Defaults to None.
            progress (Optional[ProgressCallback], optional): called with (subsets done, total subsets). Defaults to None.

        Raises:
            InputError: the pool is empty or references unknown paints, or max_results is not positive.
            SearchCancelled: the token was cancelled before every subset was searched. Carries the partial best list.

        Returns:
            List[PaintMix]: at most max_results mixes, best first.
        """
        if not isinstance(target, TargetColor):
            target = TargetColor(tuple(target))
        max_results = self.config.max_results if max_results is None else max_results
        if max_results < 1:
            raise InputError("max_results must be at least 1")
        paints = self.dataset.get_paints(pool)
        target_lab = np.array(target.lab)

        subsets: List[Tuple[Paint, ...]] = []
        for size in range(1, min(self.config.max_paints, len(paints)) + 1):
            subsets.extend(combinations(paints, size))

        stats = SearchStats(subsets=len(subsets))
        lock = threading.Lock()
        done = [0]
        bar = tqdm(total=len(subsets), desc="Searching mixes", disable=not self.config.show_progress, leave=False)

        def advance():
            with lock:
                done[0] += 1
                bar.update(1)
                count = done[0]
            if progress is not None:
                progress(count, len(subsets))

        workers = min(self.config.workers, len(subsets))
        try:
            if workers <= 1:
                best, finished = self._search(subsets, target_lab, max_results, cancel, advance, stats, lock)
            else:
                best = BestMixes(max_results)
                finished = True
                chunks = [subsets[i::workers] for i in range(workers)]
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mix-search") as pool_executor:
                    futures = [pool_executor.submit(self._search, chunk, target_lab, max_results, cancel,
                                                    advance, stats, lock) for chunk in chunks]
                    # merged in chunk order; the sort key makes the result independent of it
                    for future in futures:
                        chunk_best, chunk_finished = future.result()
                        best.merge(chunk_best)
                        finished = finished and chunk_finished
        finally:
            bar.close()

        results = best.results()
        logger.debug("Searched %d subsets (%d pruned), %d ratio points, %d computed",
                     stats.evaluated + stats.pruned, stats.pruned, stats.points, stats.computed)
        if not finished:
            logger.info("Mix search cancelled after %d of %d subsets", done[0], len(subsets))
            raise SearchCancelled(results)

        if results and results[0].distance > self.config.no_match_threshold:
            warnings.warn(f"Closest mix is {results[0].distance:.2f} away from the target, "
                          f"more than {self.config.no_match_threshold}", NoMatchFound, stacklevel=2)
        return results

    def _search(self, subsets: Sequence[Tuple[Paint, ...]], target_lab: npt.NDArray, capacity: int,
                cancel: Optional[CancellationToken], advance: Callable[[], None],
                stats: SearchStats, lock: threading.Lock) -> Tuple[BestMixes, bool]:
        best = BestMixes(capacity)
        for subset in subsets:
            if cancel is not None and cancel.cancelled:
                return best, False
            self._evaluate_subset(subset, target_lab, best, stats, lock)
            advance()
        return best, True

    def _evaluate_subset(self, subset: Tuple[Paint, ...], target_lab: npt.NDArray, best: BestMixes,
                         stats: SearchStats, lock: threading.Lock) -> None:
        steps = self.config.ratio_steps
        grid = SimplexGrid(len(subset), steps)
        if len(grid) == 0:
            return

        if best.full:
            reflectances = np.stack([p.spectrum.data for p in subset])
            bound = self.color_space.distance_lower_bound(target_lab, self.color_space.lightness_range(reflectances))
            if bound - BOUND_SLACK > best.worst_distance:
                with lock:
                    stats.pruned += 1
                return

        ids = tuple(p.id for p in subset)
        weights = grid / steps
        fingerprints = [MixFingerprint(zip(ids, row)) for row in weights]
        computed = 0

        def compute() -> List[CacheEntry]:
            nonlocal computed
            colors = self.color_space.result_colors(self.mixer.mix_fingerprints(fingerprints))
            computed = len(colors)
            return [CacheEntry(color) for color in colors]

        entries = self.cache.get_or_compute_many(fingerprints, compute)

        labs = np.array([entry.color.lab for entry in entries])
        distances = np.atleast_1d(self.color_space.distance(labs, target_lab))
        for row in np.argsort(distances, kind="stable"):
            distance = float(distances[row])
            key = (distance, len(subset), ids, tuple(int(v) for v in grid[row]))
            if not best.accepts(key):
                # rows are visited by increasing distance, so later rows cannot be accepted either
                if best.full and distance > best.worst_distance:
                    break
                continue
            color = entries[row].color
            best.offer(key, lambda row=row, color=color, distance=distance: PaintMix(
                ratio=MixRatio(zip(ids, weights[row])), color=color, distance=distance))

        with lock:
            stats.evaluated += 1
            stats.points += len(grid)
            stats.computed += computed
