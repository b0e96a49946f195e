"""
Functions related to reconciling frame counts of independently clocked systems.
"""

import dataclasses
import logging

from . import model
from .config import MAX_FRAME_DRIFT
from .error import AcqMergeError

log = logging.getLogger(__name__)


class FrameCountMismatchError(AcqMergeError):
    """
    Error indicating that systems differ by more frames than tolerated.

    Attributes
    ----------
    drift : int
        Difference between the largest and smallest frame count.
    frame_counts : dict[str, int]
        Frame count of each system.
    """

    def __init__(self, drift: int, frame_counts: dict[str, int]):
        self.drift = drift
        self.frame_counts = frame_counts
        super().__init__(
            f"The decoded data from the systems is inconsistent by {drift} "
            f"too many frames (frame counts: {frame_counts})"
        )


def reconcile_frames(
    records: dict[str, model.SystemRecord],
    tolerance: int = MAX_FRAME_DRIFT,
) -> tuple[dict[str, model.SystemRecord], int]:
    """
    Trim all systems to a common number of frames.

    Parameters
    ----------
    records : dict[str, model.SystemRecord]
        Cropped records keyed by system letter.
    tolerance : int, default=MAX_FRAME_DRIFT
        Largest tolerated difference between frame counts.

    Returns
    -------
    tuple[dict[str, model.SystemRecord], int]
        Records truncated to their first L frames, and L, the smallest frame
        count. Sync pulses at or after frame L are dropped.

    Raises
    ------
    FrameCountMismatchError
        If the frame counts differ by more than ``tolerance``.
    ValueError
        If no records are given.
    """
    if not records:
        raise ValueError("No records to reconcile")

    frame_counts = {letter: r.n_frames for letter, r in records.items()}
    length = min(frame_counts.values())
    drift = max(frame_counts.values()) - length
    log.debug("Frame counts %s, common length %d, drift %d", frame_counts, length, drift)

    if drift > tolerance:
        raise FrameCountMismatchError(drift, frame_counts)
    if drift > 0:
        log.warning(
            "Systems differ by %d frame(s), trimming all to %d frames",
            drift,
            length,
        )

    trimmed = {}
    for letter, record in records.items():
        if record.n_frames == length:
            trimmed[letter] = record
            continue
        synchpts = record.info.synchpts
        trimmed[letter] = dataclasses.replace(
            record,
            data=record.data[:, :length],
            info=dataclasses.replace(record.info, synchpts=synchpts[synchpts < length]),
        )
    return trimmed, length
