"""
Configuration management for the compliance engine.

Handles loading, updating, and persisting configuration including the
fuzzy matching stoplist, allergen false positives and snapshot policy.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Iterable, Optional
import yaml

from ingredient_compliance.matching.types import DEFAULT_GENERIC_TERMS, MatcherConfig
from ingredient_compliance.matching.allergen_detector import DEFAULT_FALSE_POSITIVES

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Manages engine configuration.

    Provides methods to load, update, and persist configuration, and typed
    accessors for the pieces each component consumes.
    """

    DEFAULT_CONFIG = {
        'matching': {
            'min_token_length': 4,
            'generic_terms': list(DEFAULT_GENERIC_TERMS),
        },
        'allergens': {
            'false_positives': list(DEFAULT_FALSE_POSITIVES),
        },
        'snapshot': {
            'max_age_seconds': 86400,
            'required_bodies': ['gras', 'ndi', 'old_dietary_ingredients'],
            'allow_empty_bodies': False,
        },
        'engine': {
            'max_workers': 1,
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = config_path
        self.config: dict[str, Any] = {}

        if config_path and config_path.exists():
            self.load_config(config_path)
        else:
            logger.info("No config file found, using defaults")
            self.config = copy.deepcopy(self.DEFAULT_CONFIG)

    def load_config(self, path: Path) -> dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration dictionary

        Raises:
            FileNotFoundError: If config file does not exist
            yaml.YAMLError: If config file is invalid
        """
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                loaded_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise

        if not loaded_config:
            logger.warning(f"Empty config file at {path}, using defaults")
            self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        else:
            # Merge with defaults to ensure all keys exist
            self.config = self._merge_with_defaults(loaded_config)

        self.config_path = path
        logger.info(f"Loaded configuration from {path}")
        return self.config

    def get_section(self, name: str) -> dict[str, Any]:
        """
        Get a copy of one configuration section.

        Raises:
            KeyError: If section not found
        """
        if name not in self.config:
            raise KeyError(f"Configuration section '{name}' not found")
        return copy.deepcopy(self.config[name])

    def get_matching_param(self, name: str) -> Any:
        """
        Get a matching parameter by name.

        Args:
            name: Parameter name

        Returns:
            Parameter value

        Raises:
            KeyError: If parameter not found
        """
        if name not in self.config.get('matching', {}):
            raise KeyError(f"Matching parameter '{name}' not found in configuration")

        return self.config['matching'][name]

    def matcher_config(self) -> MatcherConfig:
        """Fuzzy matching policy built from the 'matching' section."""
        return MatcherConfig.from_terms(
            self.get_matching_param('generic_terms') or (),
            min_token_length=int(self.get_matching_param('min_token_length')),
        )

    def allergen_false_positives(self) -> list[str]:
        return list(self.config.get('allergens', {}).get('false_positives') or [])

    def snapshot_settings(self) -> dict[str, Any]:
        """
        Snapshot policy with defaults filled in.

        Returns:
            Dict with max_age_seconds (None disables the staleness check),
            required_bodies and allow_empty_bodies
        """
        section = self.config.get('snapshot', {})
        defaults = self.DEFAULT_CONFIG['snapshot']
        return {
            'max_age_seconds': section.get('max_age_seconds', defaults['max_age_seconds']),
            'required_bodies': list(section.get('required_bodies', defaults['required_bodies'])),
            'allow_empty_bodies': bool(section.get('allow_empty_bodies', defaults['allow_empty_bodies'])),
        }

    def update_generic_terms(self, terms: Iterable[str]) -> None:
        """
        Replace the fuzzy matching stoplist.

        Raises:
            ValueError: If any term is empty
        """
        cleaned = [str(t).strip().casefold() for t in terms]
        if any(not t for t in cleaned):
            raise ValueError("Generic terms must be non-empty strings")

        old_count = len(self.config.setdefault('matching', {}).get('generic_terms') or [])
        self.config['matching']['generic_terms'] = sorted(set(cleaned))
        logger.info(f"Updated generic terms: {old_count} -> {len(self.config['matching']['generic_terms'])}")

    def save_config(self, path: Optional[Path] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Path to save to (uses self.config_path if not provided)

        Raises:
            ValueError: If no path provided and no config_path set
        """
        save_path = path or self.config_path

        if not save_path:
            raise ValueError("No path provided and no config_path set")

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)

            with open(save_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(
                    self.config,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2
                )

            logger.info(f"Saved configuration to {save_path}")

        except OSError as e:
            logger.error(f"Failed to save configuration: {e}")
            raise

    def get_all_config(self) -> dict[str, Any]:
        """
        Get the complete configuration dictionary.

        Returns:
            Full configuration dictionary
        """
        return copy.deepcopy(self.config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        logger.info("Configuration reset to defaults")

    def _merge_with_defaults(self, loaded_config: dict) -> dict:
        """Merge loaded config with defaults to ensure all keys exist."""
        merged = copy.deepcopy(self.DEFAULT_CONFIG)

        for section, values in loaded_config.items():
            if section in merged and isinstance(values, dict):
                merged[section].update(values)
            else:
                merged[section] = values

        return merged

    def validate_config(self) -> list[str]:
        """
        Validate the current configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        matching = self.config.get('matching', {})
        min_len = matching.get('min_token_length')
        if not isinstance(min_len, int) or isinstance(min_len, bool) or min_len < 1:
            errors.append("min_token_length must be a positive integer")

        terms = matching.get('generic_terms')
        if not isinstance(terms, list) or not all(isinstance(t, str) and t.strip() for t in terms):
            errors.append("generic_terms must be a list of non-empty strings")

        false_positives = self.config.get('allergens', {}).get('false_positives')
        if not isinstance(false_positives, list):
            errors.append("allergens.false_positives must be a list")

        snapshot = self.config.get('snapshot', {})
        max_age = snapshot.get('max_age_seconds')
        if max_age is not None and (not isinstance(max_age, (int, float)) or max_age <= 0):
            errors.append(f"max_age_seconds must be positive or null, got {max_age}")

        required = snapshot.get('required_bodies')
        if not isinstance(required, list) or not required:
            errors.append("required_bodies must be a non-empty list")

        max_workers = self.config.get('engine', {}).get('max_workers')
        if not isinstance(max_workers, int) or max_workers < 1:
            errors.append("max_workers must be a positive integer")

        return errors


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config(config_path: Optional[Path] = None) -> ConfigManager:
    """Get the global configuration manager, loading it on first use."""
    global _config_manager
    if _config_manager is None or config_path is not None:
        _config_manager = ConfigManager(config_path)
    return _config_manager
