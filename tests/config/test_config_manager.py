"""
Unit tests for persisted user defaults.
"""

import json
import os

from pcdoctor.config.manager import ConfigManager, get_config_manager


def test_creates_defaults(tmp_path):
    manager = ConfigManager(config_dir=str(tmp_path))
    assert manager.get("use_case") == "both"
    assert os.path.exists(tmp_path / "config.json")


def test_set_persists_and_backs_up(tmp_path):
    manager = ConfigManager(config_dir=str(tmp_path))
    manager.set("budget_usd", 750)

    reloaded = ConfigManager(config_dir=str(tmp_path))
    assert reloaded.get("budget_usd") == 750
    assert os.path.exists(tmp_path / "config.json.bak")


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
    manager = ConfigManager(config_dir=str(tmp_path))
    assert manager.get("target_fps") == 60


def test_validate_repairs_bad_values(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({
        "budget_usd": -20,
        "report_format": "pdf",
        "telemetry_timeout_s": 0,
        "target_bitrate_kbps": "fast",
    }), encoding="utf-8")
    manager = ConfigManager(config_dir=str(tmp_path))
    manager.validate_config()

    assert manager.get("budget_usd") == ConfigManager.DEFAULT_CONFIG["budget_usd"]
    assert manager.get("report_format") == "html"
    assert manager.get("telemetry_timeout_s") == ConfigManager.DEFAULT_CONFIG["telemetry_timeout_s"]
    assert manager.get("target_bitrate_kbps") is None
    # Missing keys are filled in
    assert manager.get("stale_driver_days") == 365
    saved = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    assert saved["report_format"] == "html"


def test_update_writes_once(tmp_path):
    manager = ConfigManager(config_dir=str(tmp_path))
    manager.update({"use_case": "gaming", "target_fps": 144})
    saved = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    assert saved["use_case"] == "gaming" and saved["target_fps"] == 144


def test_singleton_uses_pcdoctor_home(pcdoctor_home):
    manager = get_config_manager()
    assert manager is get_config_manager()
    assert manager.config_file == os.path.join(str(pcdoctor_home), "config.json")


def test_validate_repairs_zero_fps_and_unknown_use_case(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({
        "target_fps": 0,
        "use_case": "streaming",
        "error_window_days": 0,
    }), encoding="utf-8")
    manager = ConfigManager(config_dir=str(tmp_path))
    manager.validate_config()

    assert manager.get("target_fps") == 60
    assert manager.get("use_case") == "both"
    assert manager.get("error_window_days") == ConfigManager.DEFAULT_CONFIG["error_window_days"]
