"""
Tests for the configuration module.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest
from pathlib import Path

from opencpmp.config import OpenCPMPConfig


class TestOpenCPMPConfig:
    """Tests for OpenCPMPConfig."""

    def test_defaults(self):
        """Default configuration uses the DP knapsack and tight tolerances."""
        cfg = OpenCPMPConfig()
        assert cfg.default_knapsack == "dp"
        assert cfg.verbose is False
        assert cfg.get_tolerance("reduced_cost") == 1e-6
        assert cfg.get_tolerance("integrality") == 1e-6

    def test_data_path_string_converted(self):
        """A string data path is converted to a Path."""
        cfg = OpenCPMPConfig(data_path="/tmp/instances")
        assert cfg.data_path == Path("/tmp/instances")
        assert cfg.get_instance_path("p4_2.cpmp") == Path("/tmp/instances/p4_2.cpmp")

    def test_environment_data_path(self, monkeypatch, tmp_path):
        """OPENCPMP_DATA_PATH overrides the default data directory."""
        monkeypatch.setenv("OPENCPMP_DATA_PATH", str(tmp_path))
        cfg = OpenCPMPConfig()
        assert cfg.data_path == tmp_path

    def test_environment_num_threads(self, monkeypatch):
        """OPENCPMP_NUM_THREADS sets the default thread count."""
        monkeypatch.setenv("OPENCPMP_NUM_THREADS", "4")
        assert OpenCPMPConfig().num_threads == 4

    def test_unknown_knapsack_rejected(self):
        with pytest.raises(ValueError):
            OpenCPMPConfig(default_knapsack="greedy")

    def test_invalid_thread_count_rejected(self):
        with pytest.raises(ValueError):
            OpenCPMPConfig(num_threads=0)

    def test_partial_tolerances_merged(self):
        """Tolerances not given keep their default value."""
        cfg = OpenCPMPConfig(tolerances={"reduced_cost": 1e-4})
        assert cfg.get_tolerance("reduced_cost") == 1e-4
        assert cfg.get_tolerance("optimality") == 1e-6

    def test_set_tolerance(self):
        cfg = OpenCPMPConfig()
        cfg.set_tolerance("integrality", 1e-5)
        assert cfg.get_tolerance("integrality") == 1e-5

        with pytest.raises(ValueError):
            cfg.set_tolerance("integrality", -1.0)


class TestConfigSerialization:
    """Tests for dictionary and file round trips."""

    def test_dict_round_trip(self):
        cfg = OpenCPMPConfig(
            data_path="/tmp/data",
            verbose=True,
            default_knapsack="highs",
            num_threads=3,
        )
        restored = OpenCPMPConfig.from_dict(cfg.to_dict())

        assert restored.data_path == Path("/tmp/data")
        assert restored.verbose is True
        assert restored.default_knapsack == "highs"
        assert restored.num_threads == 3
        assert restored.tolerances == cfg.tolerances

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "opencpmp.toml"
        cfg = OpenCPMPConfig(data_path=tmp_path, verbose=True, num_threads=2)
        cfg.set_tolerance("reduced_cost", 1e-5)
        cfg.save(path)

        text = path.read_text()
        assert "[paths]" in text
        assert "[general]" in text
        assert "[tolerances]" in text

        loaded = OpenCPMPConfig.load(path)
        assert loaded.data_path == tmp_path
        assert loaded.verbose is True
        assert loaded.num_threads == 2
        assert loaded.get_tolerance("reduced_cost") == pytest.approx(1e-5)

    def test_load_missing_file_returns_defaults(self, tmp_path):
        loaded = OpenCPMPConfig.load(tmp_path / "missing.toml")
        assert loaded.default_knapsack == "dp"
        assert loaded.verbose is False
