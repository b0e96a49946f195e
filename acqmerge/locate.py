"""
Functions related to locating the files of a multi-system scan.

Files follow the AcqDecode naming convention "DATE-SUBJECT-TAG", with a
trailing lowercase letter per acquisition system, and each system's file is
stored in a subfolder named "DATEletter", e.g. "150115a" and "150115b".
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .config import SYSTEM_LETTERS
from .error import AcqMergeError

log = logging.getLogger(__name__)


class PathResolutionError(AcqMergeError):
    """Error indicating that per-system paths cannot be derived from a filename."""


# Primary raw format, assumed when the filename has no extension
DEFAULT_EXTENSION: Final[str] = ".mag"

# Length of the date code that names per-system subfolders (YYMMDD)
SCAN_ID_LENGTH: Final[int] = 6


@dataclass(slots=True, frozen=True)
class ScanLocation:
    """
    Resolved file locations of one scan.

    Attributes
    ----------
    root : str
        Filename without directory and extension.
    ext : str
        File extension including the leading dot.
    scan_id : str or None
        Date code naming the per-system subfolders, None if not derivable.
    paths : dict[str, Path]
        File path of each system, keyed by system letter.
    """

    root: str
    ext: str
    scan_id: str | None
    paths: dict[str, Path]


def scan_identifier(root: str) -> str | None:
    """
    Derive the scan identifier from a filename root.

    Parameters
    ----------
    root : str
        Filename without extension, e.g. "150115-Subject1-rest".

    Returns
    -------
    str or None
        The first dash-delimited token if it is exactly 6 characters long and
        contains no letters, otherwise None.
    """
    token = root.split("-")[0]
    if len(token) == SCAN_ID_LENGTH and not any(c.isalpha() for c in token):
        return token
    return None


def resolve_scan(filename: str | Path, directory: Path, nsys: int) -> ScanLocation:
    """
    Find the files holding each system's acquisition of a scan.

    Parameters
    ----------
    filename : str or Path
        Scan filename. Any directory part is ignored; if there is no extension,
        `DEFAULT_EXTENSION` is used.
    directory : Path
        Directory containing the scan (single system) or the per-system
        subfolders (multiple systems).
    nsys : int
        Number of acquisition systems (1, 2 or 3).

    Returns
    -------
    ScanLocation
        File locations keyed by system letter. A single system is keyed "a".

    Raises
    ------
    PathResolutionError
        If the filename is empty, or if multiple systems are requested and the
        scan identifier cannot be derived from the filename.
    ValueError
        If nsys is not 1, 2 or 3.
    """
    if nsys not in (1, 2, 3):
        raise ValueError(f"nsys must be 1, 2 or 3, got {nsys}")

    name = Path(filename)
    root, ext = name.stem, name.suffix
    if not ext and root.startswith("."):
        # a bare extension such as ".mag" names no scan
        root, ext = "", root
    if not ext:
        ext = DEFAULT_EXTENSION
    if not root:
        raise PathResolutionError(f"Cannot resolve scan from empty filename '{filename}'")

    scan_id = scan_identifier(root)
    log.debug("Filename root '%s', extension '%s', scan id %s", root, ext, scan_id)

    if nsys == 1:
        paths = {"a": Path(directory) / f"{root}{ext}"}
    else:
        if scan_id is None:
            raise PathResolutionError(
                f"Cannot derive scan identifier from '{root}': the first "
                f"dash-delimited token must be a {SCAN_ID_LENGTH}-digit date code "
                f"to locate {nsys} systems."
            )
        paths = {
            letter: Path(directory) / f"{scan_id}{letter}" / f"{root}{letter}{ext}"
            for letter in SYSTEM_LETTERS[:nsys]
        }

    for letter, path in paths.items():
        log.debug("System %s: %s", letter, path)
    return ScanLocation(root=root, ext=ext, scan_id=scan_id, paths=paths)
