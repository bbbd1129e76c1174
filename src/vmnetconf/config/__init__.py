"""Settings naming the virtual-network files to read."""
from .settings import ENV_VARS, SETTINGS_FILENAME, Settings, default_search_paths

__all__ = ["Settings", "ENV_VARS", "SETTINGS_FILENAME", "default_search_paths"]
