"""
Splicer Path Configuration

Centralized path management for Splicer data files.
All paths are relative to the project root (current working directory).

Directory Structure:
.splicer/
├── config.json          # Project-local configuration
└── logs/                # Log files
"""

from pathlib import Path
from typing import Optional


class SplicerPaths:
    """
    Centralized path configuration for Splicer.

    All paths are lazily resolved relative to project_root.
    Default project_root is current working directory.
    """

    SPLICER_DIR = ".splicer"
    CONFIG_NAME = "config.json"
    LOGS_DIR = "logs"

    def __init__(self, project_root: Optional[Path] = None, home: Optional[Path] = None):
        """
        Initialize paths configuration.

        Args:
            project_root: Root directory for the project. Defaults to CWD.
            home: Home directory holding the global config. Defaults to the user's home.
        """
        self._project_root = project_root
        self._home = home

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        if self._project_root is None:
            return Path.cwd()
        return self._project_root

    @property
    def splicer_dir(self) -> Path:
        """Get the .splicer directory path."""
        return self.project_root / self.SPLICER_DIR

    @property
    def global_dir(self) -> Path:
        """Get the per-user ~/.splicer directory path."""
        home = self._home if self._home is not None else Path.home()
        return home / self.SPLICER_DIR

    @property
    def local_config(self) -> Path:
        return self.splicer_dir / self.CONFIG_NAME

    @property
    def global_config(self) -> Path:
        return self.global_dir / self.CONFIG_NAME

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory path."""
        return self.splicer_dir / self.LOGS_DIR

    def ensure_dirs(self) -> None:
        """Create all necessary directories if they don't exist."""
        self.splicer_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(exist_ok=True)


# Global instance for convenience
_default_paths: Optional[SplicerPaths] = None


def get_paths(project_root: Optional[Path] = None) -> SplicerPaths:
    """
    Get the paths configuration.

    Args:
        project_root: Optional project root override

    Returns:
        SplicerPaths instance
    """
    global _default_paths
    if project_root is not None:
        return SplicerPaths(project_root)
    if _default_paths is None:
        _default_paths = SplicerPaths()
    return _default_paths


def reset_paths() -> None:
    """Reset the global paths instance (useful for testing)."""
    global _default_paths
    _default_paths = None
