# tests/test_config.py - Tests for configuration
"""
Unit tests for the Config class.
"""

import pytest
import yaml

from profiling_analysis.analyzer.categorizer import default_categories
from profiling_analysis.collector.snapshot import ProfileEntry
from profiling_analysis.exceptions import InvalidArgumentError
from profiling_analysis.utils.config import Config


class TestConfig:
    """Test cases for Config"""

    def test_defaults(self):
        config = Config()

        assert config.get('analysis.top_n') == 20
        assert config.get('benchmarks.save_dir') == 'benchmarks'
        assert config.get('missing.key', 'fallback') == 'fallback'
        assert config.categories() == [(n, list(k)) for n, k in default_categories()]

    def test_defaults_not_shared(self):
        first = Config()
        first.set('analysis.top_n', 5)

        assert Config().get('analysis.top_n') == 20

    def test_load_from_file_merges(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            'analysis': {'top_n': 7},
            'categories': [{'name': 'database', 'keywords': ['cursor', 'execute']}],
            'recommendations': {
                'thresholds': {'database': 5.0},
                'advisories': {'database': ["Database is hot ({percentage}%)"]},
            },
        }))

        config = Config(str(path))

        assert config.get('analysis.top_n') == 7
        assert config.get('analysis.noise_min_percentage') == 0.5
        assert config.categories() == [('database', ['cursor', 'execute'])]
        assert config.get('recommendations.thresholds.io_operations') == 20.0

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Config(str(tmp_path / "missing.yaml"))
        assert config.get('analysis.top_n') == 20

    def test_build_components(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            'categories': [['database', ['cursor']]],
            'recommendations': {
                'default_threshold': 5.0,
                'advisories': {'database': ["Database is hot ({percentage}%)"]},
            },
        }))
        config = Config(str(path))

        categorizer = config.build_categorizer()
        entries = [ProfileEntry("cursor_fetch", "db.py", 1, 10, 10.0)]
        buckets = categorizer.categorize(entries)

        lines = config.build_recommendation_generator().generate(buckets, 100)
        assert lines == ["Database is hot (10.0%)"]

    def test_invalid_categories(self):
        config = Config()
        config.set('categories', [{'name': 'other', 'keywords': ['x']}])

        with pytest.raises(InvalidArgumentError):
            config.build_categorizer()

    def test_categories_mapping_rejected(self, tmp_path):
        """A YAML mapping of categories has no reliable order"""
        path = tmp_path / "config.yaml"
        path.write_text("categories:\n  alg: [matrix]\n  io: [read]\n")

        with pytest.raises(InvalidArgumentError, match="ordered list"):
            Config(str(path)).build_categorizer()

    @pytest.mark.parametrize("item", [
        {'keywords': ['read']},
        'io',
        ['io', ['read'], 'extra'],
        {'name': 'io', 'keywords': 'read'},
    ])
    def test_malformed_category_items(self, item):
        config = Config()
        config.set('categories', [item])

        with pytest.raises(InvalidArgumentError):
            config.categories()

    def test_save_to_file(self, tmp_path):
        config = Config()
        config.set('analysis.top_n', 3)
        path = tmp_path / "saved.yaml"

        config.save_to_file(str(path))

        assert Config(str(path)).get('analysis.top_n') == 3
