"""
Load and merge multi-system AcqDecode acquisitions.

A single optical imaging scan may be recorded by up to three independently
clocked acquisition systems. This package loads each system's decoded data,
crops it to its synchronization pulses, trims the systems to a common frame
count, and merges their channels into one measurement array ordered like the
canonical source-detector pair list.

Main modules
------------
- load: The multi-system load-and-merge pipeline (`load_multi`)
- locate: Scan identifier and per-system path resolution
- decode: Decoder registry and reader for decoded HDF5 exports
- synch: Cropping to synchronization pulses
- frames: Frame count reconciliation across systems
- merge: Reshaping and concatenating per-system channel data
- pairs: Alignment of merged channels to the canonical pair list
- info: Merging of per-system metadata
- export: Writing merged scans to HDF5
- model: Data containers
- config: Loading options
- acqmerge: Entrypoint when run as a script
- args: Command-line argument parsing
- log: Logging configuration for command-line usage
"""

from .config import LoadOptions
from .load import load_multi
from .model import MultiScan, Pairs, ScanInfo

__all__ = ["LoadOptions", "MultiScan", "Pairs", "ScanInfo", "load_multi"]
