"""
Integration tests for the load_multi pipeline.
"""

import logging
import threading

import h5py
import numpy as np
import polars as pl
import pytest

from acqmerge import LoadOptions, load_multi, model
from acqmerge.decode import LoadError
from acqmerge.frames import FrameCountMismatchError
from acqmerge.info import PairListError
from acqmerge.locate import PathResolutionError
from acqmerge.merge import MeasurementMergeError
from acqmerge.pairs import AlignmentError, candidate_pairs

from conftest import SCAN_ID, SCAN_ROOT, full_pairs


def _memory_loader(records):
    """Loader returning prepared records by system letter (last letter of the file root)."""
    seen = []

    def load(path):
        seen.append(path)
        return records[path.stem[-1]]

    load.seen = seen  # type: ignore[attr-defined]
    return load


class TestLoadMultiFromDisk:
    """Tests loading HDF5 exports from disk."""

    def test_load_two_systems_succeeds(self, two_system_scan, caplog):
        """Systems are cropped, trimmed to 95 frames and merged per wavelength."""
        caplog.set_level(logging.INFO)

        scan = load_multi(f"{SCAN_ROOT}.h5", two_system_scan)

        assert isinstance(scan, model.MultiScan)
        assert scan.data.shape == (32, 95)
        assert len(scan.info.pairs) == scan.data.shape[0]
        # wavelength 1: a rows 0-7, b rows 0-7; wavelength 2: a rows 8-15, b rows 8-15
        first_frame = np.concatenate(
            [np.arange(0, 8) * 1000 + 5, np.arange(100, 108) * 1000 + 10,
             np.arange(8, 16) * 1000 + 5, np.arange(108, 116) * 1000 + 10]
        )
        np.testing.assert_array_equal(scan.data[:, 0], first_frame)
        np.testing.assert_array_equal(scan.data[:, -1], first_frame + 94)
        assert list(scan.info.io) == ["a", "b"]
        assert scan.info.io["a"].fields["gain"] == 3
        assert scan.info.io["b"].fields["gain"] == 5
        assert isinstance(scan.info.pairs, model.Pairs)
        np.testing.assert_array_equal(scan.info.synchpts, [0, 45])
        assert list(scan.sync) == ["a", "b"]
        assert list(scan.aux) == ["a", "b"]
        assert "Loaded scan '150115-Subject1-rest': 32 measurements x 95 frames" in caplog.text

    def test_load_with_flags_mapping_succeeds(self, two_system_scan):
        """Options can be given as a flags mapping."""
        scan = load_multi(f"{SCAN_ROOT}.h5", two_system_scan, {"Nsys": 2, "crop": False})

        # uncropped: 120 and 115 frames
        assert scan.data.shape == (32, 115)

    def test_load_missing_system_fails(self, two_system_scan):
        """A missing third system aborts the whole call."""
        with pytest.raises(LoadError, match="Acquisition file not found"):
            load_multi(f"{SCAN_ROOT}.h5", two_system_scan, LoadOptions(nsys=3))

    def test_load_raw_format_without_decoder_fails(self, two_system_scan):
        """The default raw extension has no built-in decoder."""
        with pytest.raises(LoadError, match="No decoder registered for '.mag'"):
            load_multi(SCAN_ROOT, two_system_scan)

    def test_load_without_scan_identifier_fails(self, tmp_path):
        """Multiple systems need a date code; no file is touched."""
        loader = _memory_loader({})

        with pytest.raises(PathResolutionError):
            load_multi("Subject1-rest.h5", tmp_path, loader=loader)
        assert loader.seen == []

    def test_load_pairs_without_source_fails(self, two_system_scan):
        """A system whose pair list lacks Src aborts the call with a load error."""
        path = two_system_scan / f"{SCAN_ID}a" / f"{SCAN_ROOT}a.h5"
        with h5py.File(path, "a") as f:
            del f["info/pairs/Src"]

        with pytest.raises(LoadError, match="missing columns: Src"):
            load_multi(f"{SCAN_ROOT}.h5", two_system_scan)


class TestLoadMultiScenarios:
    """Merge scenarios with in-memory records."""

    def test_frame_counts_100_and_95_succeeds(self, tmp_path, make_record):
        """Scenario A: drift of 5 is trimmed to 95 frames."""
        records = {"a": make_record(2, 100, ns=2, nd=2), "b": make_record(2, 95, ns=2, nd=2)}

        scan = load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=_memory_loader(records))

        assert scan.data.shape == (4, 95)

    def test_frame_counts_100_and_80_fails(self, tmp_path, make_record):
        """Scenario B: drift of 20 is reported."""
        records = {"a": make_record(2, 100, ns=2, nd=2), "b": make_record(2, 80, ns=2, nd=2)}

        with pytest.raises(FrameCountMismatchError, match="20"):
            load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=_memory_loader(records))

    @pytest.mark.parametrize("nsys", [2, 3])
    def test_alignment_to_28_pairs_succeeds(self, tmp_path, make_record, nsys):
        """Scenario C: 32 Cartesian channels are filtered to the 28 canonical pairs."""
        dropped = {(1, 2), (3, 5), (4, 7), (2, 8)}
        candidates = [tuple(r) for r in candidate_pairs(4, 8)]
        canonical = [r for r in candidates if r not in dropped]
        pairs = model.Pairs(
            Src=np.array([s for s, _ in canonical]), Det=np.array([d for _, d in canonical])
        )
        sizes = [16, 16] if nsys == 2 else [8, 8, 16]
        offsets = np.cumsum([0] + sizes[:-1])
        records = {
            letter: make_record(size, 20, ns=4, nd=8, pairs=pairs, offset=int(offset))
            for letter, size, offset in zip("abc", sizes, offsets)
        }

        scan = load_multi(
            f"{SCAN_ID}-S1.mag", tmp_path, LoadOptions(nsys=nsys), loader=_memory_loader(records)
        )

        kept = [i for i, r in enumerate(candidates) if r not in dropped]
        assert scan.data.shape == (28, 20)
        np.testing.assert_array_equal(scan.data[:, 0], np.array(kept) * 1000)
        assert len(scan.info.pairs) == 28

    def test_single_system_passthrough_succeeds(self, tmp_path, make_record):
        """Scenario D: one system's cropped data is returned unchanged."""
        record = make_record(3, 50, ns=3, nd=1, synchpts=[4, 40])
        loader = _memory_loader({"1": record})

        scan = load_multi("S1.mag", tmp_path, LoadOptions(nsys=1), loader=loader)

        assert loader.seen == [tmp_path / "S1.mag"]
        np.testing.assert_array_equal(scan.data, record.data[:, 4:41])
        assert scan.info.pairs is record.info.pairs
        assert scan.info.io == {"a": record.info.io}
        assert list(scan.sync) == ["a"]

    def test_no_overlap_fails(self, tmp_path, make_record):
        """Scenario E: no merged channel appears in the pair list."""
        pairs = model.Pairs(Src=np.array([7, 8]), Det=np.array([9, 9]))
        records = {
            "a": make_record(2, 10, ns=2, nd=2, pairs=pairs),
            "b": make_record(2, 10, ns=2, nd=2, pairs=pairs),
        }

        with pytest.raises(AlignmentError, match="None of the merged channels"):
            load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=_memory_loader(records))

    def test_table_pairs_without_source_fails(self, tmp_path, make_record):
        """A decoder handing over a pair table without Src fails with a package error."""
        table = pl.DataFrame({"Det": [1, 1, 2, 2]})
        records = {
            "a": make_record(2, 10, pairs=table),
            "b": make_record(2, 10, pairs=table, offset=2),
        }

        with pytest.raises(PairListError, match="missing required columns: Src"):
            load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=_memory_loader(records))

    def test_different_wavelength_counts_fails(self, tmp_path, make_record):
        """Systems multiplexing different wavelength counts can't be merged."""
        records = {"a": make_record(2, 10, nwl=2), "b": make_record(4, 10, nwl=1)}

        with pytest.raises(MeasurementMergeError):
            load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=_memory_loader(records))

    def test_matching_layout_is_not_aligned_succeeds(self, tmp_path, make_record, caplog):
        """Data already in pair-list order is merged without alignment."""
        caplog.set_level(logging.DEBUG)
        pairs = full_pairs(2, 4, nwl=2)
        records = {
            "a": make_record(4, 10, nwl=2, ns=2, nd=4, pairs=pairs),
            "b": make_record(4, 10, nwl=2, ns=2, nd=4, pairs=pairs, offset=8),
        }

        scan = load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=_memory_loader(records))

        assert scan.data.shape == (16, 10)
        assert "no alignment needed" in caplog.text

    def test_systems_load_in_worker_threads_succeeds(self, tmp_path, make_record):
        """Each system is loaded off the calling thread."""
        threads = []
        records = {k: make_record(1, 5, ns=1, nd=3) for k in "abc"}

        def loader(path):
            threads.append(threading.current_thread().name)
            return records[path.stem[-1]]

        load_multi(f"{SCAN_ID}-S1.mag", tmp_path, LoadOptions(nsys=3), loader=loader)

        assert len(threads) == 3
        assert all(name.startswith("acqmerge") for name in threads)

    def test_loader_error_propagates_unchanged_fails(self, tmp_path, make_record):
        """A failing system aborts the call with the loader's own error."""
        error = LoadError("corrupt file")

        def loader(path):
            if path.stem.endswith("b"):
                raise error
            return make_record(1, 5)

        with pytest.raises(LoadError) as excinfo:
            load_multi(f"{SCAN_ID}-S1.mag", tmp_path, loader=loader)
        assert excinfo.value is error

    def test_repeated_calls_are_identical_succeeds(self, two_system_scan):
        """No state is kept between calls."""
        first = load_multi(f"{SCAN_ROOT}.h5", two_system_scan)
        second = load_multi(f"{SCAN_ROOT}.h5", two_system_scan)

        np.testing.assert_array_equal(first.data, second.data)
