"""Unit tests for environment-driven defaults."""
from pathlib import Path

from storyclip.config import (
    DEFAULT_FRAME_INTERVAL_S,
    DEFAULT_SENSITIVITY,
    get_default_frame_interval,
    get_default_sensitivity,
    get_home_dir,
)


class TestDefaults:
    def test_sensitivity_default(self, monkeypatch):
        monkeypatch.delenv("STORYCLIP_SENSITIVITY", raising=False)
        assert get_default_sensitivity() == DEFAULT_SENSITIVITY == 20.0

    def test_sensitivity_from_env(self, monkeypatch):
        monkeypatch.setenv("STORYCLIP_SENSITIVITY", "12.5")
        assert get_default_sensitivity() == 12.5

    def test_bad_value_falls_back(self, monkeypatch):
        monkeypatch.setenv("STORYCLIP_SENSITIVITY", "lots")
        assert get_default_sensitivity() == DEFAULT_SENSITIVITY

    def test_non_positive_interval_falls_back(self, monkeypatch):
        monkeypatch.setenv("STORYCLIP_FRAME_INTERVAL", "0")
        assert get_default_frame_interval() == DEFAULT_FRAME_INTERVAL_S == 5.0

    def test_zero_sensitivity_accepted(self, monkeypatch):
        monkeypatch.setenv("STORYCLIP_SENSITIVITY", "0")
        assert get_default_sensitivity() == 0.0

    def test_full_sensitivity_accepted(self, monkeypatch):
        monkeypatch.setenv("STORYCLIP_SENSITIVITY", "100")
        assert get_default_sensitivity() == 100.0

    def test_out_of_range_sensitivity_falls_back(self, monkeypatch):
        for raw in ("-1", "100.5", "250", "nan"):
            monkeypatch.setenv("STORYCLIP_SENSITIVITY", raw)
            assert get_default_sensitivity() == DEFAULT_SENSITIVITY

    def test_interval_from_env(self, monkeypatch):
        monkeypatch.setenv("STORYCLIP_FRAME_INTERVAL", "2.5")
        assert get_default_frame_interval() == 2.5

    def test_negative_or_infinite_interval_falls_back(self, monkeypatch):
        for raw in ("-3", "inf"):
            monkeypatch.setenv("STORYCLIP_FRAME_INTERVAL", raw)
            assert get_default_frame_interval() == DEFAULT_FRAME_INTERVAL_S


class TestHomeDir:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORYCLIP_HOME", str(tmp_path))
        assert get_home_dir() == tmp_path.resolve()

    def test_default_under_home(self, monkeypatch):
        monkeypatch.delenv("STORYCLIP_HOME", raising=False)
        assert get_home_dir() == Path.home() / ".storyclip"
