"""
Functions related to writing merged scans to HDF5 files.
"""

import logging
from pathlib import Path
from typing import Any

import h5py  # type: ignore
import numpy as np

from . import model
from .error import AcqMergeError


class ExportError(AcqMergeError):
    """Custom error class for HDF5 writing errors."""


log = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


def write_merged(scan: model.MultiScan, output_file: Path) -> None:
    """Write a merged scan to an HDF5 file.

    Parameters
    ----------
    scan : model.MultiScan
        Merged data and metadata as returned by `load_multi()`.
    output_file : Path
        Path to the output file. A warning is shown if the file does not
        have a ".h5" extension.

    Raises
    ------
    ExportError
        If a per-system sync, aux or frame timestamp entry can't be stored.

    Notes
    -----
    The file holds ``/data`` (measurements x frames), the merged metadata
    under ``/info``, and per-system entries under ``/sync``, ``/aux`` and
    ``/framepts`` keyed by system letter. Systems without an entry are skipped.
    The layout of ``/info`` matches what `decode.read_decoded()` expects, so
    a merged scan can be read back as a single system.
    """
    if output_file.suffix != ".h5":
        log.warning("Output file doesn't have the .h5 extension: %s", output_file)

    log.debug("Writing HDF5 file: %s", output_file)
    with h5py.File(output_file, "w") as f:
        f.create_dataset("formatVersion", data=FORMAT_VERSION.encode("utf-8"))
        log.debug("Writing data with shape %s", scan.data.shape)
        f.create_dataset("data", data=scan.data, compression="gzip")
        _write_info_group(scan.info, f.create_group("info"))
        for name, entries in (
            ("sync", scan.sync),
            ("aux", scan.aux),
            ("framepts", scan.framepts),
        ):
            _write_system_entries(name, entries, f.create_group(name))
    log.debug("HDF5 file write completed")


def _write_info_group(info: model.ScanInfo, group: h5py.Group) -> None:
    """Write merged metadata into the /info group."""
    log.info("Writing metadata into %s", group.name)
    # a merged scan has one wavelength count; systems must agree for merging
    group.attrs["Nwl"] = next(iter(info.io.values())).Nwl
    if info.framerate is not None:
        group.attrs["framerate"] = info.framerate
    group.create_dataset("synchpts", data=np.asarray(info.synchpts, dtype=np.int64))

    pairs = group.create_group("pairs")
    log.debug("Writing pair list with %d rows", len(info.pairs))
    for name, column in info.pairs.columns().items():
        pairs.create_dataset(name, data=column)

    optodes = group.create_group("optodes")
    optodes.create_dataset("spos3", data=info.optodes.spos3)
    optodes.create_dataset("dpos3", data=info.optodes.dpos3)

    io = group.create_group("io")
    for letter, system_io in info.io.items():
        sub = io.create_group(letter)
        sub.attrs["Nwl"] = system_io.Nwl
        for key, value in system_io.fields.items():
            try:
                sub.attrs[key] = value
            except TypeError as e:
                log.error("Cannot store io field %s of system %s: %s", key, letter, e)
                raise ExportError(f"Cannot store io field {key} of system {letter}: {e}") from e


def _write_system_entries(name: str, entries: dict[str, Any], group: h5py.Group) -> None:
    """Write per-system recordings, one dataset (or group of datasets) per letter."""
    for letter, value in entries.items():
        if value is None:
            log.debug("No %s entry for system %s", name, letter)
            continue
        try:
            if isinstance(value, dict):
                sub = group.create_group(letter)
                for key, item in value.items():
                    sub.create_dataset(key, data=np.asarray(item))
            else:
                group.create_dataset(letter, data=np.asarray(value))
        except TypeError as e:
            log.error("Cannot store %s entry of system %s: %s", name, letter, e)
            raise ExportError(
                f"Cannot store {name} entry of system {letter}: {e}"
            ) from e
