"""
Load and merge all acquisition systems of a scan.
"""

import logging
from collections.abc import Mapping
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

from . import model
from .config import LoadOptions
from .decode import SystemLoader, load_system
from .frames import reconcile_frames
from .info import aggregate_info
from .locate import resolve_scan
from .merge import from_channel_cube, merge_measurements
from .pairs import align_pairs
from .synch import crop_to_synch

log = logging.getLogger(__name__)


def load_multi(
    filename: str | Path,
    directory: Path,
    options: LoadOptions | Mapping[str, Any] | None = None,
    loader: SystemLoader | None = None,
) -> model.MultiScan:
    """
    Load every system's acquisition of a scan and merge them.

    Parameters
    ----------
    filename : str or Path
        Scan filename, e.g. "150115-Subject1-rest.mag". The per-system files
        add a trailing system letter to the name ("...resta.mag").
    directory : Path
        Directory containing the per-system subfolders ("150115a", "150115b",
        ...), or the file itself when a single system is loaded.
    options : LoadOptions or Mapping or None, default=None
        Loading options. A mapping is converted with
        `LoadOptions.from_mapping()`, so ``{"Nsys": 3}`` works.
    loader : SystemLoader or None, default=None
        Decoder used for every system. If None, the decoder registered for
        the file extension is used.

    Returns
    -------
    model.MultiScan
        Merged data (measurements x frames) with merged metadata; sync,
        aux and frame timestamps keyed by system letter.

    Raises
    ------
    PathResolutionError
        If per-system paths cannot be derived from the filename.
    LoadError
        If any system fails to load.
    FrameCountMismatchError
        If the systems differ by more frames than tolerated.
    MeasurementMergeError
        If the systems' channel layouts can't be combined.
    AlignmentError
        If the merged channels can't be matched to the pair list.

    Notes
    -----
    Systems are loaded and cropped in parallel; the first failure aborts
    the whole call and no partial result is returned.
    """
    if options is None:
        options = LoadOptions()
    elif isinstance(options, Mapping):
        options = LoadOptions.from_mapping(options)
    log.debug("Loading options: %s", options)

    location = resolve_scan(filename, directory, options.nsys)
    log.info("Loading %d system(s) of scan '%s'", options.nsys, location.root)

    records = _load_systems(location.paths, options, loader or load_system)
    records, length = reconcile_frames(records, options.frame_tolerance)
    info = aggregate_info(records)

    if options.nsys == 1:
        data = records["a"].data
    else:
        cube = merge_measurements(records)
        cube = align_pairs(cube, info.pairs, info.optodes)
        data = from_channel_cube(cube)

    log.info(
        "Loaded scan '%s': %d measurements x %d frames",
        location.root,
        data.shape[0],
        length,
    )
    return model.MultiScan(
        data=data,
        info=info,
        sync={letter: r.sync for letter, r in records.items()},
        aux={letter: r.aux for letter, r in records.items()},
        framepts={letter: r.framepts for letter, r in records.items()},
    )


def _load_and_crop(
    path: Path,
    options: LoadOptions,
    loader: SystemLoader,
) -> model.SystemRecord:
    log.debug("Loading %s", path)
    return crop_to_synch(loader(path), options)


def _load_systems(
    paths: dict[str, Path],
    options: LoadOptions,
    loader: SystemLoader,
) -> dict[str, model.SystemRecord]:
    """Load and crop all systems concurrently, failing on the first error."""
    workers = options.workers or len(paths)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="acqmerge")
    try:
        futures = {
            letter: executor.submit(_load_and_crop, path, options, loader)
            for letter, path in paths.items()
        }
        done, _ = wait(futures.values(), return_when=FIRST_EXCEPTION)
        for letter, future in futures.items():
            error = future.exception() if future in done else None
            if error is not None:
                log.error("Loading system %s failed: %s", letter, error)
                raise error
        return {letter: future.result() for letter, future in sorted(futures.items())}
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
