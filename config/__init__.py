from config.logging_config import configure_logging
from config.settings import Settings, load_settings, settings_from_mapping

__all__ = ["Settings", "configure_logging", "load_settings", "settings_from_mapping"]
