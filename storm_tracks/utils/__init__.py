"""
Utilities package for the storm track report.

Shared configuration, logging, path and geometry helpers.
"""

from .config_utils import load_config, get_config_value, get_project_root
from .logging_utils import setup_logging
from .path_utils import ensure_directory, get_results_path

__all__ = [
    "load_config",
    "get_config_value",
    "get_project_root",
    "setup_logging",
    "ensure_directory",
    "get_results_path",
]
