"""
Test Engine Configuration

Verifies YAML loading, environment interpolation and defaults.
"""

import logging
from pathlib import Path

import pytest

from ngac_policy.config import EngineConfig, load_config, load_config_from_file
from ngac_policy.config.loader import candidate_paths, expand_env, parse_config


class TestEngineConfig:
    """Test suite for configuration loading"""

    def test_defaults(self):
        config = EngineConfig()
        assert config.is_strict
        assert config.warn_on_unanchored
        assert config.log_level_value == logging.INFO

    def test_invalid_mode_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(type_checking="lenient")

    def test_load_from_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NGAC_LOG_LEVEL", "DEBUG")
        config_file = tmp_path / "ngac.yaml"
        config_file.write_text(
            "engine:\n"
            "  type_checking: permissive\n"
            "  warn_on_unanchored: false\n"
            "logging:\n"
            "  level: \"${NGAC_LOG_LEVEL:-INFO}\"\n"
        )

        config = load_config_from_file(config_file)

        assert not config.is_strict
        assert config.warn_on_unanchored is False
        assert config.log_level == "DEBUG"
        assert config.log_level_value == logging.DEBUG

    def test_default_value_used(self, monkeypatch):
        monkeypatch.delenv("NGAC_TYPE_CHECKING", raising=False)
        assert expand_env({"mode": "${NGAC_TYPE_CHECKING:-strict}"}) == {"mode": "strict"}

    def test_required_variable_missing(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NGAC_MISSING_VAR", raising=False)
        config_file = tmp_path / "ngac.yaml"
        config_file.write_text("engine:\n  type_checking: \"${NGAC_MISSING_VAR}\"\n")

        with pytest.raises(KeyError):
            load_config_from_file(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_from_file(tmp_path / "absent.yaml")

    def test_search_working_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "ngac.yaml").write_text("engine:\n  type_checking: permissive\n")

        assert load_config(working_dir=tmp_path).type_checking == "permissive"

    def test_no_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_config() == EngineConfig()

    def test_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "ngac.yaml"
        config_file.write_text("")
        assert load_config_from_file(config_file) == EngineConfig()

    def test_interpolated_boolean(self, tmp_path, monkeypatch):
        """Booleans expanded from the environment arrive as strings and are parsed"""
        monkeypatch.setenv("NGAC_WARN", "false")
        config_file = tmp_path / "ngac.yaml"
        config_file.write_text("engine:\n  warn_on_unanchored: \"${NGAC_WARN:-true}\"\n")

        assert load_config_from_file(config_file).warn_on_unanchored is False

        monkeypatch.delenv("NGAC_WARN")
        assert load_config_from_file(config_file).warn_on_unanchored is True

    def test_invalid_boolean_rejected(self):
        with pytest.raises(ValueError):
            parse_config({"engine": {"warn_on_unanchored": "sometimes"}})

    def test_mode_normalized(self):
        config = parse_config({"engine": {"type_checking": " Permissive "}, "logging": {"level": "warning"}})
        assert config.type_checking == "permissive"
        assert config.log_level == "WARNING"
        assert config.log_level_value == logging.WARNING

    def test_invalid_mode_in_file_rejected(self, tmp_path):
        config_file = tmp_path / "ngac.yaml"
        config_file.write_text("engine:\n  type_checking: lenient\n")

        with pytest.raises(ValueError):
            load_config_from_file(config_file)

    def test_candidate_paths_order(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        work = tmp_path / "work"
        cwd = Path.cwd()

        assert candidate_paths(work) == [
            work / "ngac.yaml",
            work / "config" / "ngac.yaml",
            cwd / "ngac.yaml",
            cwd / "config" / "ngac.yaml",
        ]
