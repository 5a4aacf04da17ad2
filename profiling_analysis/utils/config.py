# profiling_analysis/utils/config.py - Configuration management
"""
Configuration management for profile analysis.
Loads and validates configuration from YAML files.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
import logging

from profiling_analysis.analyzer.categorizer import Categorizer, default_categories
from profiling_analysis.analyzer.recommendations import NO_BOTTLENECK_MESSAGE, RecommendationGenerator
from profiling_analysis.analyzer.query import default_system_patterns
from profiling_analysis.exceptions import InvalidArgumentError


class Config:
    """
    Configuration manager for profile analysis.

    Loads configuration from YAML files and provides access to settings.
    """

    DEFAULT_CONFIG = {
        'analysis': {
            'top_n': 20,
            'include_system': False,
            'system_patterns': default_system_patterns(),
            'noise_min_percentage': 0.5,
            'category_min_percentage': 5.0,
        },
        'categories': [
            {'name': name, 'keywords': keywords} for name, keywords in default_categories()
        ],
        'recommendations': {
            'default_threshold': 10.0,
            'thresholds': {
                'serialization': 15.0,
                'regex': 10.0,
                'io_operations': 20.0,
                'numeric': 25.0,
                'sorting': 10.0,
                'memory': 10.0,
                'string_operations': 15.0,
            },
            'advisories': {
                'serialization': [
                    "Serialization is a hotspot ({percentage}% of runtime)",
                    "   -> Cache encoded payloads that do not change",
                    "   -> Consider a faster encoder or a binary format",
                ],
                'regex': [
                    "Regular expressions are expensive ({percentage}% of runtime)",
                    "   -> Compile patterns once at module level",
                    "   -> Prefer str methods for plain substring checks",
                ],
                'io_operations': [
                    "I/O dominates ({percentage}% of runtime)",
                    "   -> Use buffered I/O or larger buffer sizes",
                    "   -> Batch small reads and writes",
                    "   -> Consider async I/O or connection pooling for network calls",
                ],
                'numeric': [
                    "Numeric code is a hotspot ({percentage}% of runtime)",
                    "   -> Vectorize inner loops",
                    "   -> Avoid converting between Python objects and arrays in hot paths",
                ],
                'sorting': [
                    "Sorting and heap operations are expensive ({percentage}% of runtime)",
                    "   -> Avoid re-sorting data that is already ordered",
                    "   -> Use heapq.nsmallest / nlargest for top-k queries",
                ],
                'memory': [
                    "Allocation and copying overhead ({percentage}% of runtime)",
                    "   -> Pre-allocate containers and reuse buffers",
                    "   -> Avoid deep copies in hot loops",
                ],
                'string_operations': [
                    "String handling is a hotspot ({percentage}% of runtime)",
                    "   -> Build strings with join instead of repeated concatenation",
                    "   -> Move formatting out of inner loops",
                ],
            },
            'no_bottleneck': NO_BOTTLENECK_MESSAGE,
        },
        'allocations': {
            'skip_function_prefixes': [],
            'skip_file_prefixes': [],
            'package_patterns': [],
            'small_allocation_bytes': 1000,
            'large_site_bytes': 1000000,
        },
        'benchmarks': {
            'save_dir': 'benchmarks',
        },
        'output': {
            'use_colors': True,
            'default_input': 'profile_data.json',
        },
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f) or {}

            # Merge with defaults
            self._merge_config(self.config, loaded_config)
            self.logger.info(f"Loaded configuration from {config_file}")

        except Exception as e:
            self.logger.error(f"Failed to load config: {e}")
            raise

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries. Lists are replaced.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'analysis.top_n')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'benchmarks.save_dir')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def categories(self) -> List[Tuple[str, List[str]]]:
        """
        Configured categories as ordered (name, keywords) pairs.

        Accepts either a list of {name, keywords} mappings or a list of
        [name, keywords] pairs in the YAML file.

        Raises:
            InvalidArgumentError: categories is a mapping or an item is malformed
        """
        categories = self.get('categories', [])
        if not isinstance(categories, list):
            raise InvalidArgumentError(
                "categories must be an ordered list of {name, keywords} items, "
                f"got {type(categories).__name__}",
                argument='categories', value=categories
            )

        result = []
        for item in categories:
            if isinstance(item, dict) and 'name' in item:
                name, keywords = item['name'], item.get('keywords', [])
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                name, keywords = item
            else:
                raise InvalidArgumentError(
                    f"Malformed category entry {item!r}; expected {{name, keywords}} or [name, keywords]",
                    argument='categories', value=item
                )

            if not isinstance(keywords, (list, tuple)):
                raise InvalidArgumentError(
                    f"Keywords for category {name!r} must be a list", argument='categories', value=keywords
                )
            result.append((name, list(keywords)))
        return result

    def build_categorizer(self) -> Categorizer:
        return Categorizer(self.categories())

    def build_recommendation_generator(self) -> RecommendationGenerator:
        return RecommendationGenerator(
            advisories=self.get('recommendations.advisories', {}),
            thresholds=self.get('recommendations.thresholds', {}),
            default_threshold=self.get('recommendations.default_threshold', 10.0),
            no_bottleneck=self.get('recommendations.no_bottleneck'),
        )

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)

    def save_to_file(self, config_file: str):
        """
        Save current configuration to YAML file.

        Args:
            config_file: Path to output YAML file
        """
        config_path = Path(config_file)

        try:
            with open(config_path, 'w') as f:
                yaml.dump(self.config, f, default_flow_style=False, sort_keys=False)

            self.logger.info(f"Saved configuration to {config_file}")

        except Exception as e:
            self.logger.error(f"Failed to save config: {e}")
            raise
