from typing import List


class PaintMixerError(Exception):
    """Base class for errors raised by PaintMixer."""


class DataError(PaintMixerError):
    """
    A dataset entry or raw measurement is malformed or out of range.
    Raised while loading or calculating the reflectance dataset, never per query.
    """


class InputError(PaintMixerError, ValueError):
    """
    The caller supplied invalid input: ratios that do not sum to 1, unknown paint ids,
    an empty paint pool or a spectrum of the wrong shape.
    """


class SearchCancelled(PaintMixerError):
    """
    A mix search was cancelled before it finished.

        partial (List[PaintMix]): best mixes found before the cancellation, best first. May be empty.
    """

    def __init__(self, partial: List | None = None):
        self.partial = list(partial or [])
        super().__init__(f"Search cancelled with {len(self.partial)} partial result(s)")


class NoMatchFound(UserWarning):
    """The closest mix found is farther from the target than the configured threshold."""
