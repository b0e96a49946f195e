"""
Base error class for the acqmerge package.
"""


class AcqMergeError(Exception):
    """Base class for all errors raised by acqmerge."""
