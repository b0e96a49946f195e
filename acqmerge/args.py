"""
Module for handling command-line arguments.
"""

import argparse
from pathlib import Path
from typing import Self

from .config import LoadOptions
from .error import AcqMergeError


class ArgumentError(AcqMergeError):
    """Error indicating invalid command-line arguments."""


def _directory_must_exist(path_str: str) -> Path:
    """
    Validate that a directory exists.

    Raises
    ------
    ArgumentError
        If the path is empty, does not exist, or is not a directory.
    """
    if not path_str:
        raise ArgumentError("Path must not be empty.")
    path = Path(path_str)
    if not path.is_dir():
        raise ArgumentError(f"Directory '{path_str}' does not exist.")
    return path


def _file_must_not_exist(path_str: str) -> Path:
    """
    Validate that a file path does not already exist.

    Parameters
    ----------
    path_str : str
        String representation of the file path to validate.

    Returns
    -------
    Path
        Validated Path object if the path does not exist.

    Raises
    ------
    ArgumentError
        If the path is empty or already exists.
    """
    if not path_str:
        raise ArgumentError("Path must not be empty.")
    path = Path(path_str)
    if path.exists():
        raise ArgumentError(f"Path '{path_str}' already exists.")
    return path


def _non_negative_int(value: str) -> int:
    """Validate a non-negative integer option value."""
    if not value.strip().isdecimal():
        raise ArgumentError(f"Expected a non-negative integer, got '{value}'.")
    return int(value)


class Arguments:
    """
    Class to handle configuration and parsing of command-line arguments.

    Parameters
    ----------
    progname : str or None, default=__package__
        Program name to display in help message. If None, defaults to package name.
    """

    parser: argparse.ArgumentParser
    filename: str
    directory: Path
    output: Path
    nsys: int
    no_crop: bool
    crop_pad: int
    log: bool
    verbosity: int

    def __init__(self, progname: str | None = __package__):
        parser = argparse.ArgumentParser(
            description="Load the acquisitions of a multi-system scan and merge them into one HDF5 file.",
            allow_abbrev=False,
            prog=progname if progname else "acqmerge",
        )
        parser.add_argument(
            "filename",
            help="scan filename, e.g. 150115-Subject1-rest.h5; per-system files carry "
            "an extra trailing letter (a, b, c) and live in subfolders named <date><letter>",
        )
        parser.add_argument(
            "directory",
            help="directory holding the per-system subfolders (default: current directory)",
            nargs="?",
            default=".",
            type=_directory_must_exist,
        )
        parser.add_argument(
            "-o",
            "--output",
            help="path to output file (*.h5); defaults to <filename root>.h5 in the current directory",
            type=_file_must_not_exist,
        )
        parser.add_argument(
            "--nsys",
            help="number of acquisition systems (default: 2)",
            type=int,
            choices=[1, 2, 3],
            default=2,
        )
        parser.add_argument(
            "--no-crop",
            action="store_true",
            help="don't crop systems to their first and last synchronization pulse",
        )
        parser.add_argument(
            "--crop-pad",
            help="frames to keep before the first and after the last synchronization pulse (default: 0)",
            type=_non_negative_int,
            default=0,
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            help="Increase verbosity of output, can be used multiple times. One -v for ERROR/WARNING level, "
            "-vv for INFO level, -vvv for DEBUG level. Combine with --log to redirect log output to file.",
            default=0,
            dest="verbosity",
        )
        parser.add_argument(
            "--log",
            action="store_true",
            help="Redirects logging to file acqmerge.log in the current directory. "
            "Logging level is controlled by -v/--verbose. Specifying --log implies -v.",
        )

        self.parser = parser

    def parse(self, args: list[str]) -> Self:
        """
        Parse command-line arguments and populate the Arguments object.

        Parameters
        ----------
        args : list[str]
            List of command-line arguments to parse. If empty, shows help.

        Returns
        -------
        Self
            Self with parsed argument values set as attributes.

        Raises
        ------
        ArgumentError
            If the default output file already exists.

        Notes
        -----
        If --log is specified, verbosity is automatically set to at least 1.
        Verbosity is capped at 3.
        """
        parser = self.parser
        del self.parser
        parser.parse_args(args=args or ["-h"], namespace=self)

        if self.log:
            self.verbosity = max(self.verbosity, 1)
        self.verbosity = min(self.verbosity, 3)

        if self.output is None:
            self.output = _file_must_not_exist(f"{Path(self.filename).stem}.h5")

        return self

    def load_options(self) -> LoadOptions:
        """Return the loading options selected on the command line."""
        return LoadOptions(nsys=self.nsys, crop=not self.no_crop, crop_pad=self.crop_pad)

    def __repr__(self) -> str:
        return f"Arguments({repr(self.__dict__)})"
