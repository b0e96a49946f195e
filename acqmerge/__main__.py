"""
Entry point for running acqmerge as a module.

This module provides the main entry point when the package is executed
with `python -m acqmerge`.
"""

import sys

# Entry point for when the module is run as a script
if __name__ == "__main__":
    from .acqmerge import main

    sys.exit(main())
