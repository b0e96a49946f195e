"""
Shared fixtures for tests.
"""

import logging

import h5py
import numpy as np
import pytest

from acqmerge import model

SCAN_ID = "150115"
SCAN_ROOT = "150115-Subject1-rest"


def channel_data(n_rows: int, n_frames: int, offset: int = 0) -> np.ndarray:
    """Rows hold (offset + row) * 1000 + frame, so every value identifies its origin."""
    rows = np.arange(offset, offset + n_rows)[:, None] * 1000
    return (rows + np.arange(n_frames)[None, :]).astype(np.float64)


def full_pairs(ns: int, nd: int, nwl: int = 1) -> model.Pairs:
    """Every source-detector combination (detector-major), repeated per wavelength."""
    src = np.tile(np.arange(1, ns + 1), nd)
    det = np.repeat(np.arange(1, nd + 1), ns)
    return model.Pairs(
        Src=np.tile(src, nwl),
        Det=np.tile(det, nwl),
        WL=np.repeat(np.arange(1, nwl + 1), ns * nd),
    )


@pytest.fixture(name="make_record")
def fixture_make_record():
    """Factory for in-memory system records."""

    def make(
        n_channels: int,
        n_frames: int,
        nwl: int = 1,
        ns: int = 2,
        nd: int = 2,
        pairs=None,
        synchpts=None,
        offset: int = 0,
        io_fields=None,
    ) -> model.SystemRecord:
        return model.SystemRecord(
            data=channel_data(n_channels * nwl, n_frames, offset),
            info=model.Info(
                pairs=pairs if pairs is not None else full_pairs(ns, nd, nwl),
                optodes=model.Optodes(spos3=np.zeros((ns, 3)), dpos3=np.ones((nd, 3))),
                io=model.SystemIo(Nwl=nwl, fields=io_fields or {}),
                synchpts=np.asarray(
                    synchpts if synchpts is not None else [], dtype=np.int64
                ),
                framerate=10.0,
            ),
            sync=np.array([1.0, 0.0, 1.0]),
            aux={"pulse": np.arange(3.0)},
            framepts=np.arange(n_frames),
        )

    return make


@pytest.fixture(name="write_export")
def fixture_write_export():
    """Factory writing a system record to a decoded HDF5 export."""

    def write(path, record: model.SystemRecord, **extra_io) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        pairs = record.info.pairs
        with h5py.File(path, "w") as f:
            f.create_dataset("data", data=record.data)
            if record.sync is not None:
                f.create_dataset("sync", data=record.sync)
            if record.framepts is not None:
                f.create_dataset("framepts", data=record.framepts)
            if record.aux is not None:
                aux = f.create_group("aux")
                for k, v in record.aux.items():
                    aux.create_dataset(k, data=v)
            info = f.create_group("info")
            info.attrs["Nwl"] = record.info.io.Nwl
            if record.info.framerate is not None:
                info.attrs["framerate"] = record.info.framerate
            info.create_dataset("synchpts", data=record.info.synchpts)
            group = info.create_group("pairs")
            for name, column in pairs.columns().items():
                group.create_dataset(name, data=column)
            optodes = info.create_group("optodes")
            optodes.create_dataset("spos3", data=record.info.optodes.spos3)
            optodes.create_dataset("dpos3", data=record.info.optodes.dpos3)
            if extra_io:
                io = info.create_group("io")
                for k, v in extra_io.items():
                    io.attrs[k] = v

    return write


@pytest.fixture(name="two_system_scan")
def fixture_two_system_scan(tmp_path, make_record, write_export):
    """
    Two-system scan on disk.

    4 sources x 4 detectors, 2 wavelengths. System a records detectors 1-2,
    system b detectors 3-4, so the merged channels follow the full pair list.
    System a crops to 100 frames, system b to 95.
    """
    pairs = full_pairs(4, 4, nwl=2)
    rec_a = make_record(8, 120, nwl=2, ns=4, nd=4, pairs=pairs, synchpts=[5, 50, 104])
    rec_b = make_record(8, 115, nwl=2, ns=4, nd=4, pairs=pairs, synchpts=[10, 104], offset=100)
    write_export(tmp_path / f"{SCAN_ID}a" / f"{SCAN_ROOT}a.h5", rec_a, gain=3)
    write_export(tmp_path / f"{SCAN_ID}b" / f"{SCAN_ROOT}b.h5", rec_b, gain=5)
    return tmp_path


@pytest.fixture(autouse=True, name="cleanup_logging")
def fixture_cleanup_logging():
    """Remove handlers added to the root logger by a test."""
    logger = logging.getLogger()
    level = logger.level
    yield
    for handler in logger.handlers[:]:
        # pytest's own capture handlers are subclasses and stay in place
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)
    logger.setLevel(level)
