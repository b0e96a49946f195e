"""
Functions related to merging the metadata of several systems.
"""

import logging

import polars as pl

from . import model
from .error import AcqMergeError

log = logging.getLogger(__name__)


class PairListError(AcqMergeError):
    """Custom error class for pair lists that can't be normalized."""


def normalize_pairs(pairs: model.Pairs | pl.DataFrame) -> model.Pairs:
    """
    Convert a table-shaped pair list to parallel arrays; `model.Pairs` passes through.

    Raises
    ------
    PairListError
        If the table lacks ``Src`` or ``Det``, or its index columns aren't integers.
    """
    if isinstance(pairs, pl.DataFrame):
        log.debug("Converting pair list table with %d rows to arrays", pairs.height)
        try:
            return model.Pairs.from_table(pairs)
        except (ValueError, TypeError) as e:
            log.error("Invalid pair list: %s", e)
            raise PairListError(f"Invalid pair list: {e}") from e
    return pairs


def aggregate_info(records: dict[str, model.SystemRecord]) -> model.ScanInfo:
    """
    Merge per-system metadata.

    Parameters
    ----------
    records : dict[str, model.SystemRecord]
        Records keyed by system letter.

    Returns
    -------
    model.ScanInfo
        Metadata of the first system (in letter order), with its pair list
        normalized to `model.Pairs` and every system's decoder diagnostics
        collected under its letter in ``io``.

    Notes
    -----
    The collected diagnostics are kept for troubleshooting only; the pair
    list and optodes always come from the first system.
    """
    if not records:
        raise ValueError("No records to aggregate")
    letters = sorted(records)
    baseline = records[letters[0]].info
    log.debug("Using system %s as metadata baseline", letters[0])

    return model.ScanInfo(
        pairs=normalize_pairs(baseline.pairs),
        optodes=baseline.optodes,
        synchpts=baseline.synchpts,
        io={letter: records[letter].info.io for letter in letters},
        framerate=baseline.framerate,
    )
