"""
Data containers for multi-system acquisitions.

Per-system records hold what the decoder produced for one acquisition
subfolder. Merged containers hold the result of combining up to three
systems into one scan.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import polars as pl


@dataclass(slots=True, frozen=True)
class Optodes:
    """
    Optode positions of the imaging cap.

    Attributes
    ----------
    spos3 : np.ndarray
        2D array (n_sources x 3) of source 3D coordinates.
    dpos3 : np.ndarray
        2D array (n_detectors x 3) of detector 3D coordinates.
    """

    spos3: np.ndarray
    dpos3: np.ndarray

    @property
    def Ns(self) -> int:
        """Number of sources."""
        return self.spos3.shape[0]

    @property
    def Nd(self) -> int:
        """Number of detectors."""
        return self.dpos3.shape[0]


@dataclass(slots=True, frozen=True)
class Pairs:
    """
    Canonical measurement list stored as parallel arrays.

    Row ``i`` of every array describes measurement ``i``. The row count is the
    number of measurements downstream consumers expect.

    Attributes
    ----------
    Src : np.ndarray
        1D integer array of source indices (1-based).
    Det : np.ndarray
        1D integer array of detector indices (1-based).
    WL : np.ndarray or None, default=None
        Optional 1D integer array of wavelength indices (1-based).
    fields : dict[str, np.ndarray], default=empty dict
        Additional parallel columns (e.g. source-detector distances).
    """

    Src: np.ndarray
    Det: np.ndarray
    WL: np.ndarray | None = None
    fields: dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        n = len(self.Src)
        columns = {"Det": self.Det, **self.fields}
        if self.WL is not None:
            columns["WL"] = self.WL
        for name, column in columns.items():
            if len(column) != n:
                raise ValueError(
                    f"Pairs column '{name}' has {len(column)} rows, expected {n}"
                )

    def __len__(self) -> int:
        return len(self.Src)

    @classmethod
    def from_table(cls, table: pl.DataFrame) -> "Pairs":
        """
        Build a struct-of-arrays pair list from a table.

        Parameters
        ----------
        table : pl.DataFrame
            Table with one row per measurement. Columns ``Src`` and ``Det`` are
            required, ``WL`` is optional, and any other column is kept in
            ``fields``.

        Returns
        -------
        Pairs
            The same rows as parallel arrays.

        Raises
        ------
        ValueError
            If ``Src`` or ``Det`` is missing.
        """
        missing = {"Src", "Det"} - set(table.columns)
        if missing:
            raise ValueError(
                f"Pairs table is missing required columns: {', '.join(sorted(missing))}"
            )
        extra = [c for c in table.columns if c not in {"Src", "Det", "WL"}]
        return cls(
            Src=table["Src"].to_numpy().astype(np.int64),
            Det=table["Det"].to_numpy().astype(np.int64),
            WL=table["WL"].to_numpy().astype(np.int64) if "WL" in table.columns else None,
            fields={c: table[c].to_numpy() for c in extra},
        )

    def columns(self) -> dict[str, np.ndarray]:
        """Return all parallel columns keyed by name."""
        cols = {"Src": self.Src, "Det": self.Det}
        if self.WL is not None:
            cols["WL"] = self.WL
        cols.update(self.fields)
        return cols


@dataclass(slots=True, frozen=True)
class SystemIo:
    """
    Decoder diagnostics of one acquisition system.

    Attributes
    ----------
    Nwl : int
        Number of wavelengths multiplexed per channel in this system.
    fields : dict[str, Any], default=empty dict
        Other decoder settings kept for troubleshooting.
    """

    Nwl: int
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Info:
    """
    Metadata of one acquisition system as returned by a decoder.

    Attributes
    ----------
    pairs : Pairs or pl.DataFrame
        Canonical measurement list. Decoders may hand it over as a table;
        it is normalized to `Pairs` when systems are merged.
    optodes : Optodes
        Source and detector positions.
    io : SystemIo
        Decoder diagnostics, including the wavelength count.
    synchpts : np.ndarray
        1D integer array of frame indices (0-based) of synchronization pulses.
    framerate : float or None, default=None
        Frame rate in Hz, if known.
    """

    pairs: Pairs | pl.DataFrame
    optodes: Optodes
    io: SystemIo
    synchpts: np.ndarray
    framerate: float | None = None


@dataclass(slots=True, frozen=True)
class SystemRecord:
    """
    Everything loaded for one acquisition system.

    Attributes
    ----------
    data : np.ndarray
        2D array (channels x frames) of light levels. Rows are wavelength-major:
        all channels of the first wavelength, then all channels of the second, etc.
    info : Info
        System metadata.
    sync : Any
        Synchronization recording, passed through untouched.
    aux : Any
        Auxiliary recordings, passed through untouched.
    framepts : Any
        Frame timestamps, passed through untouched.
    """

    data: np.ndarray
    info: Info
    sync: Any = None
    aux: Any = None
    framepts: Any = None

    @property
    def n_frames(self) -> int:
        """Number of frames (time points)."""
        return self.data.shape[1]


@dataclass(slots=True, frozen=True)
class ScanInfo:
    """
    Merged metadata of a multi-system scan.

    Attributes
    ----------
    pairs : Pairs
        Canonical measurement list; its length equals the row count of the
        merged data.
    optodes : Optodes
        Optode positions of the first (baseline) system.
    synchpts : np.ndarray
        Synchronization pulses of the baseline system.
    io : dict[str, SystemIo]
        Decoder diagnostics of each system, keyed by system letter.
    framerate : float or None, default=None
        Frame rate of the baseline system.
    """

    pairs: Pairs
    optodes: Optodes
    synchpts: np.ndarray
    io: dict[str, SystemIo]
    framerate: float | None = None


@dataclass(slots=True, frozen=True)
class MultiScan:
    """
    Result of loading and merging a scan.

    Attributes
    ----------
    data : np.ndarray
        2D array (measurements x frames).
    info : ScanInfo
        Merged metadata.
    sync : dict[str, Any]
        Synchronization recordings keyed by system letter.
    aux : dict[str, Any]
        Auxiliary recordings keyed by system letter.
    framepts : dict[str, Any]
        Frame timestamps keyed by system letter.
    """

    data: np.ndarray
    info: ScanInfo
    sync: dict[str, Any]
    aux: dict[str, Any]
    framepts: dict[str, Any] = field(default_factory=dict)
