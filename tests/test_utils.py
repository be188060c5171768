import json
import logging

import pytest

from utils import setup_logging, load_config


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_load_config_reads_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"run_control": {"max_steps": 3}}))
    assert load_config(str(path)) == {"run_control": {"max_steps": 3}}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.json"))


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_setup_logging_console_only(restore_root_logger):
    setup_logging({"logging": {"level": "debug", "log_file": None}})
    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1


def test_setup_logging_creates_rotating_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "simulation.log"
    setup_logging({"logging": {"level": "INFO", "log_file": str(log_file)}})
    logging.info("hello from the test")
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert log_file.exists()
    assert "hello from the test" in log_file.read_text()
