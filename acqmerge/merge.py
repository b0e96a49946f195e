"""
Functions related to merging channel data of several systems.

Each system stores its light levels as (channels x frames) with wavelength-major
rows. Merging regroups every system's rows by channel, stacks the systems in
letter order, and flattens the result back to wavelength-major rows.
"""

import logging

import numpy as np

from . import model
from .error import AcqMergeError

log = logging.getLogger(__name__)


class MeasurementMergeError(AcqMergeError):
    """Custom error class for channel layouts that cannot be merged."""


def to_channel_cube(data: np.ndarray, nwl: int) -> np.ndarray:
    """
    Regroup wavelength-major rows by channel.

    Parameters
    ----------
    data : np.ndarray
        2D array (Nch*Nwl x frames); row ``w*Nch + c`` holds channel ``c`` at
        wavelength ``w``.
    nwl : int
        Number of wavelengths.

    Returns
    -------
    np.ndarray
        3D array (Nch x Nwl x frames).

    Raises
    ------
    MeasurementMergeError
        If the row count is not a multiple of ``nwl``.
    """
    rows, frames = data.shape
    if nwl < 1 or rows % nwl:
        raise MeasurementMergeError(
            f"Cannot split {rows} rows into {nwl} wavelengths of equal size"
        )
    return data.reshape(nwl, rows // nwl, frames).transpose(1, 0, 2)


def from_channel_cube(cube: np.ndarray) -> np.ndarray:
    """Flatten (Nch x Nwl x frames) back to wavelength-major (Nch*Nwl x frames)."""
    nch, nwl, frames = cube.shape
    return cube.transpose(1, 0, 2).reshape(nch * nwl, frames)


def merge_measurements(records: dict[str, model.SystemRecord]) -> np.ndarray:
    """
    Stack the channels of all systems.

    Parameters
    ----------
    records : dict[str, model.SystemRecord]
        Records keyed by system letter, all with the same number of frames.

    Returns
    -------
    np.ndarray
        3D array (total channels x Nwl x frames), systems in letter order.

    Raises
    ------
    MeasurementMergeError
        If systems have different wavelength or frame counts.
    """
    letters = sorted(records)
    nwls = {letter: records[letter].info.io.Nwl for letter in letters}
    if len(set(nwls.values())) != 1:
        raise MeasurementMergeError(
            f"Systems have different wavelength counts: {nwls}"
        )
    frames = {letter: records[letter].n_frames for letter in letters}
    if len(set(frames.values())) != 1:
        raise MeasurementMergeError(
            f"Systems have different frame counts: {frames}; reconcile them first"
        )

    cubes = [to_channel_cube(records[letter].data, nwls[letter]) for letter in letters]
    for letter, cube in zip(letters, cubes):
        log.debug("System %s contributes %d channels", letter, cube.shape[0])
    merged = np.concatenate(cubes, axis=0)
    log.info(
        "Merged %d systems into %d channels x %d wavelengths x %d frames",
        len(letters),
        *merged.shape,
    )
    return merged
