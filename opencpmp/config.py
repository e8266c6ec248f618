"""
Configuration module for OpenCPMP.

This module provides configuration management for the OpenCPMP library,
including data paths, solver settings, and numerical tolerances.

Configuration can be set via:
1. Environment variables (OPENCPMP_*)
2. Config file (~/.opencpmp/config.toml or ./opencpmp.toml)
3. Programmatic API

Example:
    >>> from opencpmp.config import config
    >>> print(config.get_tolerance("integrality"))
    1e-06
    >>> config.num_threads = 4
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union


KNAPSACK_SOLVERS = ("dp", "highs")


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def _get_default_data_path() -> Path:
    """Get the default data path."""
    env_path = os.environ.get('OPENCPMP_DATA_PATH')
    if env_path:
        return Path(env_path)

    return _get_project_root() / "data"


def _get_default_num_threads() -> int:
    value = os.environ.get('OPENCPMP_NUM_THREADS')
    if value and value.isdigit():
        return int(value)
    return 1


def _default_tolerances() -> dict[str, float]:
    return {
        "optimality": 1e-6,
        "feasibility": 1e-6,
        "integrality": 1e-6,
        "reduced_cost": 1e-6,
    }


@dataclass
class OpenCPMPConfig:
    """
    Configuration for the OpenCPMP library.

    Attributes:
        data_path: Root directory for instance files
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        verbose: Print progress of the branch-and-price search
        default_knapsack: Knapsack oracle used by pricing ("dp" or "highs")
        num_threads: Number of threads for parallel pricing
        tolerances: Numerical tolerances for optimization
    """

    # Paths
    data_path: Path = field(default_factory=_get_default_data_path)

    # Logging
    log_level: str = "INFO"
    verbose: bool = False

    # Solver settings
    default_knapsack: str = "dp"
    num_threads: int = field(default_factory=_get_default_num_threads)

    # Numerical tolerances
    tolerances: dict[str, float] = field(default_factory=_default_tolerances)

    def __post_init__(self):
        """Ensure paths are Path objects and settings are valid."""
        if isinstance(self.data_path, str):
            self.data_path = Path(self.data_path)
        if self.default_knapsack not in KNAPSACK_SOLVERS:
            raise ValueError(
                f"Unknown knapsack solver {self.default_knapsack!r}, "
                f"expected one of {KNAPSACK_SOLVERS}"
            )
        if self.num_threads < 1:
            raise ValueError("num_threads must be at least 1")

        # Missing tolerances fall back to the defaults
        merged = _default_tolerances()
        merged.update(self.tolerances)
        self.tolerances = merged

    # =========================================================================
    # Path helpers
    # =========================================================================

    def get_instance_path(self, instance: str) -> Path:
        """
        Get path to an instance file.

        Args:
            instance: Instance file name (e.g., "p4_2.cpmp")

        Returns:
            Path to the instance file
        """
        return self.data_path / instance

    # =========================================================================
    # Tolerance helpers
    # =========================================================================

    def get_tolerance(self, name: str) -> float:
        """Get a tolerance value by name."""
        return self.tolerances.get(name, 1e-6)

    def set_tolerance(self, name: str, value: float) -> None:
        """Set a tolerance value."""
        if value < 0:
            raise ValueError(f"Tolerance {name!r} must be non-negative")
        self.tolerances[name] = value

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "data_path": str(self.data_path),
            "log_level": self.log_level,
            "verbose": self.verbose,
            "default_knapsack": self.default_knapsack,
            "num_threads": self.num_threads,
            "tolerances": self.tolerances.copy(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> 'OpenCPMPConfig':
        """Create config from dictionary."""
        verbose = d.get("verbose", False)
        if isinstance(verbose, str):
            verbose = verbose.lower() == "true"

        return cls(
            data_path=Path(d.get("data_path", _get_default_data_path())),
            log_level=d.get("log_level", "INFO"),
            verbose=bool(verbose),
            default_knapsack=d.get("default_knapsack", "dp"),
            num_threads=int(d.get("num_threads", 1)),
            tolerances=d.get("tolerances", {}),
        )

    def save(self, path: Optional[Path] = None) -> None:
        """
        Save configuration to a TOML file.

        Args:
            path: Path to save to (default: ./opencpmp.toml)
        """
        if path is None:
            path = Path("opencpmp.toml")

        # Simple TOML-like format (no dependency needed)
        lines = [
            "# OpenCPMP Configuration",
            "",
            "[paths]",
            f'data_path = "{self.data_path}"',
            "",
            "[general]",
            f'log_level = "{self.log_level}"',
            f"verbose = {str(self.verbose).lower()}",
            f'default_knapsack = "{self.default_knapsack}"',
            f"num_threads = {self.num_threads}",
            "",
            "[tolerances]",
        ]
        for name, value in self.tolerances.items():
            lines.append(f"{name} = {value!r}")

        Path(path).write_text("\n".join(lines) + "\n")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'OpenCPMPConfig':
        """
        Load configuration from a TOML file.

        Args:
            path: Path to load from (default: ./opencpmp.toml or ~/.opencpmp/config.toml)

        Returns:
            Loaded configuration (or default if file not found)
        """
        if path is None:
            local_config = Path("opencpmp.toml")
            user_config = Path.home() / ".opencpmp" / "config.toml"

            if local_config.exists():
                path = local_config
            elif user_config.exists():
                path = user_config
            else:
                return cls()

        path = Path(path)
        if not path.exists():
            return cls()

        # Simple TOML-like parsing (no dependency needed)
        config_dict: dict[str, Any] = {"tolerances": {}}
        current_section = None

        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("[") and line.endswith("]"):
                current_section = line[1:-1]
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"')

                if value.isdigit():
                    value = int(value)
                else:
                    try:
                        value = float(value)
                    except ValueError:
                        pass

                if current_section == "tolerances":
                    config_dict["tolerances"][key] = float(value)
                else:
                    config_dict[key] = value

        return cls.from_dict(config_dict)


# Global configuration instance
config = OpenCPMPConfig()


def set_data_path(path: Union[str, Path]) -> None:
    """
    Set the data path globally.

    Args:
        path: New data path
    """
    config.data_path = Path(path)


def get_data_path() -> Path:
    """Get the current data path."""
    return config.data_path


def get_instance_path(instance: str) -> Path:
    """
    Get path to an instance file in the data directory.

    Args:
        instance: Instance file name

    Returns:
        Path to the instance file
    """
    return config.get_instance_path(instance)
