import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

from PaintMixer.ColorMixer import ColorMixer, Pool
from PaintMixer.MixSearch import CancellationToken, ProgressCallback
from PaintMixer.Utils.CustomTypes import PaintMix, TargetColor
from PaintMixer.Utils.Errors import SearchCancelled

logger = logging.getLogger(__name__)


class SearchTask:
    """
    Handle on a search running in a MixingSession.
    Cancelling is cooperative: the search stops at the next subset boundary.
    """

    def __init__(self, token: CancellationToken, future: Future):
        self.token = token
        self.future = future

    def cancel(self) -> None:
        self.token.cancel()
        self.future.cancel()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> List[PaintMix]:
        """
        Wait for the ranked mixes.

        :raises SearchCancelled: the task was cancelled, with the partial results when the search had started
        :raises concurrent.futures.TimeoutError: the search did not finish within timeout
        """
        try:
            return self.future.result(timeout)
        except CancelledError:
            # cancelled before the search started
            raise SearchCancelled() from None


class MixingSession:
    """
    Runs searches for one painter in the background, one at a time.

    Submitting a new search cancels the one still running, so a UI that reruns the search
    whenever the target or the paint set changes only ever waits for the latest request.
    """

    def __init__(self, mixer: ColorMixer, max_workers: int = 1):
        self.mixer = mixer
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mixing-session")
        self._lock = threading.Lock()
        self._current: Optional[SearchTask] = None

    def submit(self, target: Union[TargetColor, Sequence[float]], paint_set: Pool,
               max_results: Optional[int] = None, progress: Optional[ProgressCallback] = None) -> SearchTask:
        token = CancellationToken()
        with self._lock:
            if self._current is not None and not self._current.done():
                logger.debug("Superseding the running search")
                self._current.cancel()
            future = self._executor.submit(self.mixer.find_best_mixes, target, paint_set, max_results, token, progress)
            self._current = SearchTask(token, future)
            return self._current

    @property
    def current(self) -> Optional[SearchTask]:
        return self._current

    def cancel(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.cancel()

    def close(self, wait: bool = True) -> None:
        self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "MixingSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
