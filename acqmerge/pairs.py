"""
Functions related to aligning merged channels with the canonical pair list.

When the systems' raw channel layouts don't match the canonical pair list,
the merged data holds every source-detector combination of the cap
(detector-major, source-minor). Alignment keeps the combinations that appear
in the pair list and drops the rest.
"""

import logging

import numpy as np

from . import model
from .error import AcqMergeError

log = logging.getLogger(__name__)


class AlignmentError(AcqMergeError):
    """Custom error class for merged channels that can't be matched to the pair list."""


def unique_pairs(pairs: model.Pairs) -> np.ndarray:
    """
    Return the distinct (source, detector) rows of a pair list.

    Parameters
    ----------
    pairs : model.Pairs
        Canonical pair list, possibly with one row per wavelength.

    Returns
    -------
    np.ndarray
        2D integer array (K x 2) of (source, detector) rows in first-seen order.
    """
    rows = np.column_stack([pairs.Src, pairs.Det]).astype(np.int64)
    _, first = np.unique(rows, axis=0, return_index=True)
    return rows[np.sort(first)]


def candidate_pairs(ns: int, nd: int) -> np.ndarray:
    """
    Enumerate every source-detector combination.

    Parameters
    ----------
    ns : int
        Number of sources.
    nd : int
        Number of detectors.

    Returns
    -------
    np.ndarray
        2D integer array (ns*nd x 2) of 1-based (source, detector) rows; the
        detector varies slowest and the source fastest.
    """
    src = np.tile(np.arange(1, ns + 1), nd)
    det = np.repeat(np.arange(1, nd + 1), ns)
    return np.column_stack([src, det]).astype(np.int64)


def needs_alignment(cube: np.ndarray, pairs: model.Pairs) -> bool:
    """Tell whether merged data has a different measurement count than the pair list."""
    nch, nwl, _ = cube.shape
    return nch * nwl != len(pairs)


def align_pairs(
    cube: np.ndarray,
    pairs: model.Pairs,
    optodes: model.Optodes,
) -> np.ndarray:
    """
    Keep the merged channels that appear in the pair list.

    Parameters
    ----------
    cube : np.ndarray
        3D array (channels x Nwl x frames) of merged data. If its measurement
        count already matches the pair list it is returned unchanged.
        Otherwise channels must enumerate every source-detector combination,
        as produced by `candidate_pairs()`.
    pairs : model.Pairs
        Canonical pair list.
    optodes : model.Optodes
        Optodes defining the number of sources and detectors.

    Returns
    -------
    np.ndarray
        3D array (kept channels x Nwl x frames), channels in
        `candidate_pairs()` order.

    Raises
    ------
    AlignmentError
        If the channel count doesn't match the number of combinations, if no
        combination appears in the pair list, or if the aligned measurement
        count still differs from the pair list.
    """
    if not needs_alignment(cube, pairs):
        log.debug("Merged data matches the pair list, no alignment needed")
        return cube

    nch, nwl, _ = cube.shape
    log.info(
        "Merged data has %d measurements but the pair list has %d, aligning channels",
        nch * nwl,
        len(pairs),
    )

    info_list = unique_pairs(pairs)
    d_list = candidate_pairs(optodes.Ns, optodes.Nd)
    if len(d_list) != nch:
        raise AlignmentError(
            f"Merged data has {nch} channels, but {optodes.Ns} sources and "
            f"{optodes.Nd} detectors give {len(d_list)} combinations"
        )

    # row-wise membership of each candidate in the pair list
    keep = (d_list[:, None, :] == info_list[None, :, :]).all(axis=2).any(axis=1)
    if not keep.any():
        raise AlignmentError(
            "None of the merged channels appear in the pair list; cannot align"
        )

    aligned = cube[keep]
    log.debug(
        "Kept %d of %d channels, dropped %d", aligned.shape[0], nch, nch - aligned.shape[0]
    )
    if aligned.shape[0] * nwl != len(pairs):
        raise AlignmentError(
            f"Aligned data has {aligned.shape[0] * nwl} measurements, "
            f"but the pair list has {len(pairs)}"
        )
    return aligned
