"""
CLI Module - Command Line Interface for fieldsync.
"""

from .app import main, run, create_parser, setup_logging
from .exit_codes import ExitCode
from .output import Console

__all__ = ["main", "run", "create_parser", "setup_logging", "ExitCode", "Console"]
