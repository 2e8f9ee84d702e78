"""
Exit Codes - Process exit status for the fieldsync CLI.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes returned by ``fieldsync``."""

    SUCCESS = 0
    ERROR = 1
    DROPPED = 2  # sync finished but some operations were dropped
    CONFIG_ERROR = 3
    INTERRUPTED = 130
