"""
Configuration Manager for matrixfx

This module loads engine tuning from YAML files and merges it with the
built-in defaults.
"""

import copy
import os
import yaml
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ENGINE_COMPONENT = "matrixfx"

DEFAULT_CONFIG = {
    "engine": {
        "fps": 30,
        "auto_cycle": True,
        "min_cycle_seconds": 3,
        "max_cycle_seconds": 7,
        "transition_frames": 30,
        "initial_effect": "FILLED_SILHOUETTE",
        "system_mode": "ACTIVE",
    },
    "motion": {
        "history": 500,
        "var_threshold": 16,
        "detect_shadows": True,
    },
    "panels": {
        "count": 1,
        "mode": "EXTEND",
        "multi_panel": False,
    },
}


class ConfigManager:
    """Manages engine configuration files."""

    def __init__(self, config_dir=None):
        """Initialize the configuration manager.

        Args:
            config_dir (str, optional): Directory containing config files.
                                       If None, uses the project's configs directory.
        """
        if config_dir is None:
            project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
            self.config_dir = os.path.join(project_root, "configs")
        else:
            self.config_dir = config_dir

        self.configs = {}

    def load_config(self, component_name):
        """Load configuration for a specific component.

        Args:
            component_name (str): Name of the component (e.g., 'matrixfx')

        Returns:
            dict: Configuration dictionary or empty dict if not found
        """
        config_path = os.path.join(self.config_dir, f"{component_name}.yaml")

        if not os.path.exists(config_path):
            logger.warning(f"Configuration file not found: {config_path}")
            return {}

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
                self.configs[component_name] = config
                logger.info(f"Loaded configuration for {component_name}")
                return config
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading configuration for {component_name}: {e}")
            return {}

    def get_config(self, component_name, section=None, key=None, default=None):
        """Get configuration value.

        Args:
            component_name (str): Name of the component
            section (str, optional): Section name within the config
            key (str, optional): Key within the section
            default: Default value if not found

        Returns:
            The configuration value or default if not found
        """
        if component_name not in self.configs:
            self.load_config(component_name)

        config = self.configs.get(component_name, {})

        if section is None:
            return config

        section_data = config.get(section) or {}

        if key is None:
            return section_data

        return section_data.get(key, default)

    def save_config(self, component_name, config_data):
        """Save configuration for a component.

        Args:
            component_name (str): Name of the component
            config_data (dict): Configuration data to save

        Returns:
            bool: True if successful, False otherwise
        """
        config_path = os.path.join(self.config_dir, f"{component_name}.yaml")

        try:
            os.makedirs(os.path.dirname(config_path), exist_ok=True)

            with open(config_path, 'w') as f:
                yaml.dump(config_data, f, default_flow_style=False)

            self.configs[component_name] = config_data
            logger.info(f"Saved configuration for {component_name}")
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error saving configuration for {component_name}: {e}")
            return False


def merge_config(overrides=None):
    """Return DEFAULT_CONFIG with the given per-section overrides applied."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_engine_config(config_manager=None, component_name=ENGINE_COMPONENT):
    """Load the engine configuration file and merge it over the defaults.

    Args:
        config_manager (ConfigManager, optional): Manager to read from. A
            manager on the default configs directory is used when omitted.
        component_name (str): Config file stem.

    Returns:
        dict: Complete engine configuration.
    """
    manager = config_manager or ConfigManager()
    return merge_config(manager.get_config(component_name))
