import os
import json
import shutil

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import UseCase
from pcdoctor.utils.logger import log


def _config_dir():
    return os.environ.get("PCDOCTOR_HOME") or os.path.join(os.path.expanduser("~"), ".pcdoctor")


class ConfigManager:
    DEFAULT_CONFIG = {
        "use_case": "both",
        "budget_usd": 500,
        "target_fps": 60,
        "target_bitrate_kbps": None,
        "report_format": "html",
        "report_dir": os.path.join(os.path.expanduser("~"), "pcdoctor-reports"),
        "telemetry_timeout_s": constants.DEFAULT_TELEMETRY_TIMEOUT_S,
        "event_log_timeout_s": constants.EVENT_LOG_TIMEOUT_S,
        "error_window_days": constants.ERROR_WINDOW_DAYS,
        "stale_driver_days": constants.STALE_DRIVER_DAYS,
    }

    REPORT_FORMATS = ("json", "html")
    INT_MINIMUMS = {"budget_usd": 0, "target_fps": 1, "error_window_days": 1, "stale_driver_days": 0}

    def __init__(self, config_dir=None):
        self.config_dir = config_dir or _config_dir()
        self.config_file = os.path.join(self.config_dir, "config.json")
        self.config = self.load_config()

    def load_config(self):
        if not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir)

        if not os.path.exists(self.config_file):
            self.save_config(self.DEFAULT_CONFIG)
            return self.DEFAULT_CONFIG.copy()

        try:
            with open(self.config_file, 'r', encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            return data
        except Exception as e:
            log.error(f"Failed to load config: {e}. Loading defaults.")
            return self.DEFAULT_CONFIG.copy()

    def save_config(self, config=None):
        if config is None:
            config = self.config

        # Keep the previous file as a backup
        if os.path.exists(self.config_file):
            try:
                shutil.copy2(self.config_file, self.config_file + ".bak")
            except Exception as e:
                log.warning(f"Failed to backup config: {e}")

        try:
            with open(self.config_file, 'w', encoding="utf-8") as f:
                json.dump(config, f, indent=4)
        except Exception as e:
            log.error(f"Failed to save config: {e}")

    def get(self, key, default=None):
        return self.config.get(key, default)

    def set(self, key, value):
        self.config[key] = value
        self.save_config()

    def update(self, values):
        """Set several keys with a single write."""
        self.config.update(values)
        self.save_config()

    def validate_config(self):
        """Ensure config structure is valid."""
        changes = False

        for key, default_val in self.DEFAULT_CONFIG.items():
            if key not in self.config:
                self.config[key] = default_val
                changes = True

        for key, minimum in self.INT_MINIMUMS.items():
            value = self.config.get(key)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                self.config[key] = self.DEFAULT_CONFIG[key]
                changes = True

        for key in ("telemetry_timeout_s", "event_log_timeout_s"):
            value = self.config.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                self.config[key] = self.DEFAULT_CONFIG[key]
                changes = True

        bitrate = self.config.get("target_bitrate_kbps")
        if bitrate is not None and (isinstance(bitrate, bool) or not isinstance(bitrate, int) or bitrate <= 0):
            self.config["target_bitrate_kbps"] = None
            changes = True

        if self.config.get("use_case") not in [u.value for u in UseCase]:
            self.config["use_case"] = self.DEFAULT_CONFIG["use_case"]
            changes = True

        if self.config.get("report_format") not in self.REPORT_FORMATS:
            self.config["report_format"] = self.DEFAULT_CONFIG["report_format"]
            changes = True

        if not isinstance(self.config.get("report_dir"), str):
            self.config["report_dir"] = self.DEFAULT_CONFIG["report_dir"]
            changes = True

        if changes:
            log.info("Config repaired with default values.")
            self.save_config()


_config_manager = None


def get_config_manager():
    """Lazily created, validated ConfigManager for the current PCDOCTOR_HOME."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
        _config_manager.validate_config()
    return _config_manager
