"""Path management for aks-deployer.

Manages the ~/.aks-deployer/ and ~/.kube/ locations used across commands.
"""

from pathlib import Path

# Base directory for user-level settings
DEPLOYER_DIR = Path.home() / ".aks-deployer"

# Settings file
CONFIG_FILE = DEPLOYER_DIR / "config.yaml"

# Log directory (same as base for simplicity)
LOG_DIR = DEPLOYER_DIR

# Directory holding the persistent kubeconfig store
KUBE_DIR = Path.home() / ".kube"

# Project-local state directory, relative to the project root
PROJECT_STATE_DIR = ".aks-deployer"

# Default project file name
PROJECT_FILE = "aks-deployer.yaml"


def ensure_dirs() -> None:
    """Create the user-level directory if missing (mode 0o700)."""
    DEPLOYER_DIR.mkdir(mode=0o700, exist_ok=True)


def get_log_file(name: str = "deploy") -> Path:
    """Get path to a log file.

    Args:
        name: Log file name (without extension)

    Returns:
        Path to the log file
    """
    return LOG_DIR / f"{name}.log"


def get_env_file(project_dir: Path, env_name: str) -> Path:
    """Get the .env file for an environment of a project.

    Args:
        project_dir: Directory containing the project file
        env_name: Environment name (e.g., "dev")

    Returns:
        Path to ``<project>/.aks-deployer/<env>/.env``
    """
    return project_dir / PROJECT_STATE_DIR / env_name / ".env"
