"""
Functions related to cropping a system's data to its synchronization pulses.
"""

import dataclasses
import logging

import numpy as np

from . import model
from .config import LoadOptions

log = logging.getLogger(__name__)


def crop_to_synch(
    record: model.SystemRecord,
    options: LoadOptions | None = None,
) -> model.SystemRecord:
    """
    Crop a system's data to the span between its first and last sync pulse.

    Parameters
    ----------
    record : model.SystemRecord
        Record as returned by a decoder.
    options : LoadOptions or None, default=None
        ``crop`` disables cropping when False; ``crop_pad`` frames are kept on
        both sides of the pulse span, clipped to the recording.

    Returns
    -------
    model.SystemRecord
        New record whose data starts at the first pulse (minus padding) and
        ends at the last pulse (plus padding), inclusive. Sync pulse indices
        are shifted to the new first frame. The input record is not modified.

    Notes
    -----
    Records with fewer than two sync pulses have no span to crop to and are
    returned unchanged.
    """
    if options is None:
        options = LoadOptions()
    if not options.crop:
        log.debug("Cropping disabled, keeping all %d frames", record.n_frames)
        return record

    synchpts = np.sort(np.asarray(record.info.synchpts, dtype=np.int64))
    if len(synchpts) < 2:
        log.warning(
            "Found %d sync pulse(s), need at least 2 to crop; keeping all %d frames",
            len(synchpts),
            record.n_frames,
        )
        return record

    start = max(int(synchpts[0]) - options.crop_pad, 0)
    stop = min(int(synchpts[-1]) + options.crop_pad + 1, record.n_frames)
    log.debug(
        "Cropping frames %d-%d (%d of %d kept)",
        start,
        stop - 1,
        stop - start,
        record.n_frames,
    )

    kept = synchpts[(synchpts >= start) & (synchpts < stop)] - start
    return dataclasses.replace(
        record,
        data=record.data[:, start:stop],
        info=dataclasses.replace(record.info, synchpts=kept),
    )
