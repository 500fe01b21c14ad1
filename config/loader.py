"""
Settings loader for YAML files
"""
import yaml
import logging
from dataclasses import fields
from pathlib import Path

from .models import AppSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "config/settings.yaml"


class SettingsLoader:
    """Loads and saves user settings from YAML files"""

    def __init__(self, settings_path: str = DEFAULT_SETTINGS_PATH):
        self.settings_path = Path(settings_path)

    def load(self) -> AppSettings:
        """Load settings from YAML file, falling back to defaults"""
        if not self.settings_path.exists():
            logger.info(f"Settings file not found at {self.settings_path}, using defaults")
            return AppSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)

            if not data:
                logger.warning("Empty settings file, using defaults")
                return AppSettings()

            known = {f.name for f in fields(AppSettings)}
            unknown = set(data) - known
            if unknown:
                logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")

            settings = AppSettings(**{k: v for k, v in data.items() if k in known})

            errors = settings.validate()
            if errors:
                raise ValueError(f"Settings validation failed: {errors}")

            logger.info(f"Loaded settings from {self.settings_path} (profile={settings.trading_profile})")
            return settings

        except Exception as e:
            logger.error(f"Failed to load settings from {self.settings_path}: {e}")
            logger.info("Using default settings")
            return AppSettings()

    def save(self, settings: AppSettings) -> bool:
        """Save settings to YAML file"""
        errors = settings.validate()
        if errors:
            logger.error(f"Cannot save invalid settings: {errors}")
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                yaml.dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)

            logger.info(f"Settings saved to {self.settings_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to save settings to {self.settings_path}: {e}")
            return False

    def reset(self) -> None:
        """Remove the settings file so defaults apply again"""
        if self.settings_path.exists():
            self.settings_path.unlink()
            logger.info(f"Settings reset, removed {self.settings_path}")


def load_settings(settings_path: str = DEFAULT_SETTINGS_PATH) -> AppSettings:
    """Convenience function to load settings"""
    return SettingsLoader(settings_path).load()


def save_settings(settings: AppSettings, settings_path: str = DEFAULT_SETTINGS_PATH) -> bool:
    """Convenience function to save settings"""
    return SettingsLoader(settings_path).save(settings)
