import yaml

from callcenter_tools import common
from callcenter_tools.common import global_config
from callcenter_tools.common.global_config import get_config, reload_config


def _isolate(monkeypatch, tmp_path):
    monkeypatch.setattr(global_config, "_config", {})
    monkeypatch.setattr(global_config, "_logger_initialized", False)
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("ENVIRONMENT", raising=False)


def test_defaults_apply_without_yaml(monkeypatch, tmp_path):
    _isolate(monkeypatch, tmp_path / "missing")
    monkeypatch.setattr(global_config, "_config_dir", lambda: None)

    assert get_config("data.directory") == "testdata"
    assert get_config("reports.allure_results") == "reports/allure-results"
    assert get_config("logging.nothing", "fallback") == "fallback"


def test_yaml_environment_overlay_and_env_override(monkeypatch, tmp_path):
    _isolate(monkeypatch, tmp_path)
    (tmp_path / "config.yaml").write_text(
        yaml.dump({"data": {"directory": "sheets"}, "logging": {"level": "INFO"}}),
        encoding="utf-8",
    )
    (tmp_path / "qc7.yaml").write_text(yaml.dump({"data": {"directory": "qc7-sheets"}}), encoding="utf-8")

    assert get_config("data.directory") == "sheets"

    monkeypatch.setenv("ENVIRONMENT", "qc7")
    reload_config()
    assert get_config("data.directory") == "qc7-sheets"
    assert get_config("reports.test_results") == "test-results"

    monkeypatch.setenv("LOGGING__LEVEL", "DEBUG")
    reload_config()
    assert get_config("logging.level") == "DEBUG"


def test_init_logger_is_the_single_logging_entry_point(monkeypatch, tmp_path):
    _isolate(monkeypatch, tmp_path / "missing")
    monkeypatch.setattr(global_config, "_config_dir", lambda: None)
    removals = []
    monkeypatch.setattr(global_config.logger, "remove", lambda *args: removals.append(args))
    monkeypatch.setattr(global_config.logger, "add", lambda *args, **kwargs: 0)

    global_config.init_logger()
    global_config.init_logger()
    assert len(removals) == 1

    global_config.init_logger(force=True)
    assert len(removals) == 2

    assert "init_logger" in common.__all__
    assert not hasattr(common, "get_logger")
