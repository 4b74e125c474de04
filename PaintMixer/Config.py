import argparse
from dataclasses import dataclass, fields
from typing import Optional

from colour import MSDS_CMFS, SDS_ILLUMINANTS, SDS_LIGHT_SOURCES

from PaintMixer.ColorMath.Conversion import SYMMETRIC_DELTA_E_METHODS
from PaintMixer.Observer.Observer import DEFAULT_OBSERVER


@dataclass(frozen=True)
class MixerConfig:
    """
    Settings of the mixing engine.

        illuminant (str): standard illuminant colors are evaluated under.
        observer (str): standard observer colour-matching functions.
        delta_e_method (str): color difference formula used as the search objective.
        max_paints (int): largest number of paints in a mix.
        ratio_steps (int): ratios are searched in steps of 1/ratio_steps.
        max_results (int): number of mixes returned when the caller does not ask for a number.
        no_match_threshold (float): distance above which a NoMatchFound warning is issued.
        cache_size (int): maximum number of cached mix colors.
        cache_max_age (Optional[float]): seconds after which cached colors expire, never when None.
        workers (int): threads evaluating subsets of paints in parallel.
        show_progress (bool): display a progress bar while searching.
    """
    illuminant: str = "D65"
    observer: str = DEFAULT_OBSERVER
    delta_e_method: str = "CIE 2000"
    max_paints: int = 3
    ratio_steps: int = 12
    max_results: int = 5
    no_match_threshold: float = 10.0
    cache_size: int = 200_000
    cache_max_age: Optional[float] = None
    workers: int = 1
    show_progress: bool = False

    def __post_init__(self):
        if self.illuminant not in SDS_ILLUMINANTS and self.illuminant not in SDS_LIGHT_SOURCES:
            raise ValueError(f"Illuminant {self.illuminant} not found.")
        if self.observer not in MSDS_CMFS:
            raise ValueError(f"Observer {self.observer} not found.")
        if self.delta_e_method not in SYMMETRIC_DELTA_E_METHODS:
            raise ValueError(f"delta_e_method must be one of {SYMMETRIC_DELTA_E_METHODS}")
        for name in ("max_paints", "ratio_steps", "max_results", "cache_size", "workers"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.no_match_threshold < 0:
            raise ValueError("no_match_threshold must not be negative")
        if self.cache_max_age is not None and self.cache_max_age <= 0:
            raise ValueError("cache_max_age must be positive")

    @staticmethod
    def from_args(args: argparse.Namespace) -> "MixerConfig":
        """Build a config from parsed arguments, see ParserOptions.AddMixerArgs. Missing arguments keep their defaults."""
        values = {f.name: getattr(args, f.name) for f in fields(MixerConfig)
                  if getattr(args, f.name, None) is not None}
        return MixerConfig(**values)
