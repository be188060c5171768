import json
import logging

import pytest

import main
from rules import load_rules


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_headless_run_saves_rules(tmp_path, restore_root_logger):
    rules_file = tmp_path / "data" / "rules.json"
    config = {
        "logging": {"level": "WARNING", "log_file": None},
        "simulation_parameters": {"seed": 3, "particle_count": 40, "particle_types": 3},
        "run_control": {"max_steps": 6, "log_throttle_steps": 2, "profile": False},
        "persistence": {"rules_file": str(rules_file)},
    }
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(config))

    main.main(str(config_path))

    assert load_rules(str(rules_file), 3) is not None


def test_missing_config_is_reported(tmp_path, capsys):
    main.main(str(tmp_path / "absent.json"))
    assert "FATAL" in capsys.readouterr().out
