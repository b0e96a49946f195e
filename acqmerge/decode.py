"""
Functions related to decoding one acquisition system's files.

Decoders are looked up by file extension. The raw AcqDecode formats (.mag,
.iq) need an external decoder registered with `register_decoder()`. Decoded
acquisitions exported to HDF5 (.h5, .hdf5) are read by `read_decoded()`.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeAlias

import h5py  # type: ignore
import numpy as np
import polars as pl

from . import model
from .error import AcqMergeError

log = logging.getLogger(__name__)


class LoadError(AcqMergeError):
    """Custom error class for per-system loading errors."""


SystemLoader: TypeAlias = Callable[[Path], model.SystemRecord]

_DECODERS: dict[str, SystemLoader] = {}


def register_decoder(ext: str, loader: SystemLoader) -> None:
    """
    Register a decoder for a file extension.

    Parameters
    ----------
    ext : str
        File extension, with or without the leading dot. Case insensitive.
    loader : SystemLoader
        Callable taking a file path and returning a `model.SystemRecord`.
        It should raise `LoadError` for missing or malformed files.
    """
    key = _normalize_ext(ext)
    if key in _DECODERS:
        log.warning("Replacing decoder registered for '%s'", key)
    _DECODERS[key] = loader
    log.debug("Registered decoder for '%s': %s", key, loader)


def get_decoder(ext: str) -> SystemLoader:
    """
    Return the decoder registered for a file extension.

    Raises
    ------
    LoadError
        If no decoder is registered for the extension.
    """
    key = _normalize_ext(ext)
    try:
        return _DECODERS[key]
    except KeyError:
        raise LoadError(
            f"No decoder registered for '{key}' files. "
            f"Supported extensions: {', '.join(sorted(_DECODERS))}"
        ) from None


def load_system(path: Path) -> model.SystemRecord:
    """Decode one system's file with the decoder registered for its extension."""
    return get_decoder(path.suffix)(path)


def _normalize_ext(ext: str) -> str:
    ext = ext.lower().strip()
    return ext if ext.startswith(".") else f".{ext}"


def read_decoded(path: Path) -> model.SystemRecord:
    """
    Read one system's decoded acquisition from an HDF5 export.

    Parameters
    ----------
    path : Path
        HDF5 file with the layout below.

    Returns
    -------
    model.SystemRecord
        Record with the pair list still in table form.

    Raises
    ------
    LoadError
        If the file doesn't exist or doesn't follow the expected layout.

    Notes
    -----
    Expected layout::

        /data               (channels x frames) light levels
        /sync               synchronization recording (optional)
        /framepts           frame timestamps (optional)
        /aux                auxiliary recordings (optional)
        /info               attrs: Nwl, framerate (optional)
        /info/synchpts      frame indices (0-based) of sync pulses
        /info/pairs/<col>   measurement list columns, Src and Det required
        /info/optodes/spos3, /info/optodes/dpos3
        /info/io            attrs: additional decoder settings (optional)

    sync, aux and framepts may each be a dataset or a group of datasets; groups
    are read into dicts keyed by member name.
    """
    log.debug("Reading decoded acquisition: %s", path)
    if not path.is_file():
        raise LoadError(f"Acquisition file not found: {path}")

    try:
        with h5py.File(path, "r") as f:
            data = np.asarray(f["data"][()], dtype=np.float64)
            if data.ndim != 2:
                raise LoadError(
                    f"Data in {path} must be 2D (channels x frames), got shape {data.shape}"
                )
            info_group = f["info"]
            record = model.SystemRecord(
                data=data,
                info=model.Info(
                    pairs=_read_pairs_table(info_group["pairs"]),
                    optodes=model.Optodes(
                        spos3=np.asarray(info_group["optodes/spos3"][()], dtype=np.float64),
                        dpos3=np.asarray(info_group["optodes/dpos3"][()], dtype=np.float64),
                    ),
                    io=_read_io(info_group),
                    synchpts=np.asarray(info_group["synchpts"][()], dtype=np.int64).ravel(),
                    framerate=(
                        float(info_group.attrs["framerate"])
                        if "framerate" in info_group.attrs
                        else None
                    ),
                ),
                sync=_read_entry(f, "sync"),
                aux=_read_entry(f, "aux"),
                framepts=_read_entry(f, "framepts"),
            )
    except LoadError:
        raise
    except (KeyError, OSError, ValueError, TypeError, pl.exceptions.PolarsError) as e:
        log.exception("Failed to read decoded acquisition %s: %s", path, e)
        raise LoadError(f"Failed to read decoded acquisition {path}: {e}") from e

    log.debug(
        "Read %d channels x %d frames, %d wavelengths, %d sync pulses from %s",
        record.data.shape[0],
        record.data.shape[1],
        record.info.io.Nwl,
        len(record.info.synchpts),
        path.name,
    )
    return record


def _read_entry(f: h5py.File, name: str) -> Any:
    """Read an optional dataset; groups are read into nested dicts."""
    if name not in f:
        return None
    return _read_item(f[name])


def _read_item(item: h5py.Group | h5py.Dataset) -> Any:
    if isinstance(item, h5py.Group):
        return {k: _read_item(v) for k, v in item.items()}
    return item[()]


def _read_pairs_table(group: h5py.Group) -> pl.DataFrame:
    """Read the measurement list columns into a table."""
    missing = sorted({"Src", "Det"} - set(group))
    if missing:
        raise LoadError(
            f"Pair list in {group.file.filename} is missing columns: {', '.join(missing)}"
        )
    return pl.DataFrame({name: np.asarray(ds[()]).ravel() for name, ds in group.items()})


def _read_io(info_group: h5py.Group) -> model.SystemIo:
    """Read wavelength count and decoder settings."""
    nwl = int(info_group.attrs["Nwl"])
    if nwl < 1:
        raise LoadError(f"Wavelength count must be positive, got {nwl}")
    fields = dict(info_group["io"].attrs) if "io" in info_group else {}
    return model.SystemIo(Nwl=nwl, fields=fields)


register_decoder(".h5", read_decoded)
register_decoder(".hdf5", read_decoded)
