"""
Main entrypoint for merging multi-system acquisitions when run as a script.
"""

import logging
import sys
from pprint import pformat

from .args import ArgumentError, Arguments
from .error import AcqMergeError
from .export import write_merged
from .load import load_multi
from .log import config_logger


def main() -> int:
    """
    Multi-system load-and-merge script.

    This function coordinates the workflow when run as
    `python -m acqmerge` on the command line:

    1. Parse command-line arguments
    2. Configure logging based on user preferences
    3. Load, crop, trim and merge the acquisition systems
    4. Write the merged scan to HDF5

    Returns
    -------
    int
        Exit code: 0 for success, 1 for failure.

    Notes
    -----
    Errors are reported as a one-line message; details are only shown
    with -v flags and/or --log.
    """
    log = None
    try:
        args = Arguments().parse(sys.argv[1:])

        config_logger(file_logging=args.log, verbosity_level=args.verbosity)
        log = logging.getLogger(__name__)
        log.debug("Parsed arguments: %s", pformat(args, indent=2))

        scan = load_multi(args.filename, args.directory, args.load_options())

        log.info("Writing merged scan to %s", args.output)
        write_merged(scan, args.output)

        log.info("Successfully merged %d system(s)", len(scan.info.io))
        return 0

    except ArgumentError as e:
        print(f"Argument error: {e}")
        return 1
    except AcqMergeError as e:
        if log is not None:
            log.exception("%s", e)
        print(
            f"Merge failed: {e}\n"
            "Increase verbosity (-v, -vv, -vvv) for more details. Use --log to log messages to a file.",
        )
        return 1
    except Exception as e:  # pylint: disable=W0718
        print(
            "Something went wrong. Increase verbosity (-v, -vv, -vvv) for more details. Use --log to log messages to a file.",
        )
        if log is not None:
            log.exception("Exception received. Error message: %s", e)
        else:
            print("Logging not configured, dumping exception:")
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
