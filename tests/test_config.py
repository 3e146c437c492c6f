"""Tests for configuration loading and logging setup."""

import logging
from pathlib import Path

import pytest

from para_publisher._logging import LOGGER_NAME, configure_logging
from para_publisher.config import BuildConfig, load_config
from para_publisher.core.models import DirectoryNotFoundError, InvalidPathError


class TestBuildConfig:
    """Tests for BuildConfig."""

    def test_defaults(self, tmp_path):
        config = BuildConfig(input_dir=str(tmp_path), output_dir="out")

        assert config.input_dir == tmp_path
        assert config.output_dir == Path("out")
        assert config.base_url == "/"
        assert config.site_title == "Knowledge Base"
        assert config.verbose is False
        assert config.heading_ids is True
        assert config.max_workers >= 1

    def test_invalid_workers(self, tmp_path):
        with pytest.raises(ValueError):
            BuildConfig(input_dir=tmp_path, output_dir=tmp_path / "out", max_workers=0)

    def test_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PARA_PUBLISHER_BASE_URL", "/kb/")
        monkeypatch.setenv("PARA_PUBLISHER_SITE_TITLE", "My Notes")
        monkeypatch.setenv("PARA_PUBLISHER_MAX_WORKERS", "3")

        config = BuildConfig.from_env(tmp_path, tmp_path / "out")

        assert config.base_url == "/kb/"
        assert config.site_title == "My Notes"
        assert config.max_workers == 3

    def test_from_env_overrides_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PARA_PUBLISHER_SITE_TITLE", "From Env")

        config = BuildConfig.from_env(tmp_path, tmp_path / "out", site_title="Explicit")

        assert config.site_title == "Explicit"

    def test_validate_ok(self, tmp_path):
        BuildConfig(input_dir=tmp_path, output_dir=tmp_path / "out").validate()

    def test_validate_missing_input(self, tmp_path):
        config = BuildConfig(input_dir=tmp_path / "missing", output_dir=tmp_path / "out")

        with pytest.raises(DirectoryNotFoundError) as exc_info:
            config.validate()
        assert "Directory not found" in str(exc_info.value)

    def test_validate_input_is_file(self, tmp_path):
        input_file = tmp_path / "file.md"
        input_file.write_text("x")

        with pytest.raises(InvalidPathError) as exc_info:
            BuildConfig(input_dir=input_file, output_dir=tmp_path / "out").validate()
        assert "is not a directory" in str(exc_info.value)

    def test_validate_output_is_file(self, tmp_path):
        output_file = tmp_path / "out"
        output_file.write_text("x")

        with pytest.raises(InvalidPathError) as exc_info:
            BuildConfig(input_dir=tmp_path, output_dir=output_file).validate()
        assert "exists and is a file" in str(exc_info.value)


class TestLoadConfig:
    """Tests for load_config."""

    def test_load(self, tmp_path):
        config_file = tmp_path / "publisher.yaml"
        config_file.write_text(
            "input_dir: vault\n"
            "output_dir: /srv/site\n"
            "site_title: Garden\n"
            "heading_ids: false\n"
            "max_workers: 2\n"
        )

        config = load_config(config_file)

        assert config.input_dir == tmp_path / "vault"
        assert config.output_dir == Path("/srv/site")
        assert config.site_title == "Garden"
        assert config.heading_ids is False
        assert config.max_workers == 2

    def test_overrides(self, tmp_path):
        config_file = tmp_path / "publisher.yaml"
        config_file.write_text("input_dir: vault\noutput_dir: site\nverbose: false\n")

        config = load_config(config_file, verbose=True)

        assert config.verbose is True

    def test_unknown_keys(self, tmp_path):
        config_file = tmp_path / "publisher.yaml"
        config_file.write_text("input_dir: a\noutput_dir: b\ntheme: dark\n")

        with pytest.raises(ValueError) as exc_info:
            load_config(config_file)
        assert "theme" in str(exc_info.value)

    def test_missing_required(self, tmp_path):
        config_file = tmp_path / "publisher.yaml"
        config_file.write_text("input_dir: a\n")

        with pytest.raises(ValueError) as exc_info:
            load_config(config_file)
        assert "output_dir" in str(exc_info.value)

    def test_not_a_mapping(self, tmp_path):
        config_file = tmp_path / "publisher.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            load_config(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_one_handler(self):
        configure_logging()
        configure_logging()

        logger = logging.getLogger(LOGGER_NAME)
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("PARA_PUBLISHER_LOG_LEVEL", "warning")

        configure_logging()

        assert logging.getLogger(LOGGER_NAME).level == logging.WARNING

    def test_verbose(self, monkeypatch):
        monkeypatch.setenv("PARA_PUBLISHER_LOG_LEVEL", "ERROR")

        configure_logging(verbose=True)

        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG

    def test_module_loggers_are_children(self, caplog):
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

        logging.getLogger("para_publisher.core.pipeline").info("hello")

        assert "hello" in caplog.text
