"""
Options controlling how a multi-system scan is loaded.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Self

# Frame count difference tolerated between systems; 1 second at 10 Hz.
MAX_FRAME_DRIFT: Final[int] = 10

# Acquisition systems in merge order.
SYSTEM_LETTERS: Final[tuple[str, ...]] = ("a", "b", "c")


@dataclass(slots=True, frozen=True)
class LoadOptions:
    """
    Loading parameters.

    Attributes
    ----------
    nsys : int, default=2
        Number of acquisition systems (1, 2 or 3).
    crop : bool, default=True
        Crop each system to its first and last synchronization pulse.
    crop_pad : int, default=0
        Frames kept before the first and after the last pulse when cropping.
    frame_tolerance : int, default=MAX_FRAME_DRIFT
        Largest frame count difference between systems that is trimmed
        rather than rejected.
    workers : int or None, default=None
        Threads used to load systems; None means one per system.

    Raises
    ------
    ValueError
        If any value is out of range.
    """

    nsys: int = 2
    crop: bool = True
    crop_pad: int = 0
    frame_tolerance: int = MAX_FRAME_DRIFT
    workers: int | None = None

    def __post_init__(self) -> None:
        if self.nsys not in (1, 2, 3):
            raise ValueError(f"nsys must be 1, 2 or 3, got {self.nsys}")
        if self.crop_pad < 0:
            raise ValueError(f"crop_pad must not be negative, got {self.crop_pad}")
        if self.frame_tolerance < 0:
            raise ValueError(
                f"frame_tolerance must not be negative, got {self.frame_tolerance}"
            )
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    @property
    def letters(self) -> tuple[str, ...]:
        """System letters used for this scan, in merge order."""
        return SYSTEM_LETTERS[: self.nsys]

    @classmethod
    def from_mapping(cls, flags: Mapping[str, Any]) -> Self:
        """
        Build options from a flags mapping.

        Parameters
        ----------
        flags : Mapping[str, Any]
            Keys are option names. ``Nsys`` is accepted as an alias of ``nsys``.
            Unknown keys are ignored.

        Returns
        -------
        LoadOptions
            Options with defaults for anything not given.
        """
        known = {"nsys", "crop", "crop_pad", "frame_tolerance", "workers"}
        values = {k: v for k, v in flags.items() if k in known}
        if "Nsys" in flags and "nsys" not in values:
            values["nsys"] = flags["Nsys"]
        return cls(**values)
