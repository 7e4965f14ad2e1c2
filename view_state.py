"""
Dashboard view state.

The page holds a single immutable ViewState. Each upload either replaces
it with a freshly analyzed one or keeps it and records the error message
to show the user.
"""

import hashlib
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Optional

from analysis import Analysis, analyze_workbook
from load_data import DashboardError

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADED = "loaded"


@dataclass(frozen=True)
class ViewState:
    status: str = IDLE
    analysis: Optional[Analysis] = None
    error: Optional[str] = None
    source_name: Optional[str] = None
    source_digest: Optional[str] = None

    @classmethod
    def idle(cls) -> "ViewState":
        return cls()

    @property
    def is_loaded(self) -> bool:
        return self.status == LOADED


def upload_digest(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def apply_upload(state: ViewState, data: bytes, filename: str) -> ViewState:
    """
    Transition the view for a new upload.

    Success replaces the whole state with the new analysis. A failure keeps
    the previous analysis (if any) and only sets the error message.
    """
    try:
        analysis = analyze_workbook(data, filename)
    except DashboardError as e:
        logger.error("Upload of %s failed: %s", filename, e)
        return replace(state, error=f"Could not process '{filename}': {e}")

    logger.info("Upload of %s analyzed: %d chart rows, %d subjects",
                filename, len(analysis.chart_rows), len(analysis.subject_totals))

    return ViewState(
        status=LOADED,
        analysis=analysis,
        error=None,
        source_name=filename,
        source_digest=upload_digest(data)
    )


class UploadGate:
    """
    Lets one upload through at a time; overlapping uploads are refused.

    Streamlit already runs a session's reruns one at a time and releases the
    slot when a run is interrupted, so in the app an upload is refused only
    if analysis runs off the script thread.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def try_begin(self) -> bool:
        return self._lock.acquire(blocking=False)

    def end(self) -> None:
        self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def upload_slot(self) -> Iterator[bool]:
        """Yield True if this upload got the slot, False if one is already in flight."""
        acquired = self.try_begin()
        try:
            yield acquired
        finally:
            if acquired:
                self.end()
