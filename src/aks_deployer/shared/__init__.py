"""Shared modules for aks-deployer.

Provides path layout and logging configuration used by every command.
"""

from .logging import configure_logging, get_logger, verbosity_to_level
from .paths import (
    CONFIG_FILE,
    DEPLOYER_DIR,
    KUBE_DIR,
    LOG_DIR,
    PROJECT_FILE,
    ensure_dirs,
    get_env_file,
    get_log_file,
)

__all__ = [
    # Paths
    "DEPLOYER_DIR",
    "CONFIG_FILE",
    "LOG_DIR",
    "KUBE_DIR",
    "PROJECT_FILE",
    "ensure_dirs",
    "get_env_file",
    "get_log_file",
    # Logging
    "configure_logging",
    "get_logger",
    "verbosity_to_level",
]
