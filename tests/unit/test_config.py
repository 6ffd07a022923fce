"""
Unit tests for configuration data models.

Tests SearchConfig, TagsConfig, ThemeConfig and FinderConfig validation,
normalization, warnings and dictionary conversion.
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from tagfinder.models.config import (
    DEFAULT_IGNORE_PATTERNS,
    FinderConfig,
    SearchConfig,
    TagsConfig,
    ThemeConfig,
    validate_config_dict,
)


class TestSearchConfig:
    """Test cases for SearchConfig."""

    def test_default_config(self):
        config = SearchConfig()
        assert config.thread_count == 4
        assert config.max_queue_length == 512
        assert config.channel_capacity == 256
        assert config.max_results == 30
        assert config.results_per_tick == 64
        assert config.max_depth is None
        assert config.follow_symlinks is True
        assert config.ignored_extensions == []

    def test_custom_config(self):
        config = SearchConfig(thread_count=8, max_depth=3, ignored_extensions=["BAK", ".swp", "bak"])
        assert config.thread_count == 8
        assert config.max_depth == 3
        assert config.ignored_extensions == ["bak", "swp"]

    @pytest.mark.parametrize("field", [
        "thread_count", "max_queue_length", "channel_capacity", "max_results", "results_per_tick",
    ])
    def test_invalid_values(self, field):
        with pytest.raises(ValidationError):
            SearchConfig(**{field: 0})

    def test_negative_depth(self):
        with pytest.raises(ValidationError):
            SearchConfig(max_depth=-1)


class TestTagsConfig:
    """Test cases for TagsConfig."""

    def test_default_path_is_expanded(self):
        config = TagsConfig()
        assert not config.index_path.startswith("~")
        assert config.get_index_path().name == "tags.yaml"
        assert config.get_index_path().is_absolute()

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            TagsConfig(index_path="  ")


class TestThemeConfig:
    """Test cases for ThemeConfig."""

    def test_defaults(self):
        theme = ThemeConfig()
        assert theme.folder_color == (255, 209, 84)
        assert theme.bg_color == (35, 47, 54)

    def test_hex_and_list_colors(self):
        theme = ThemeConfig(folder_color="#ff0080", file_color=[1, 2, 3])
        assert theme.folder_color == (255, 0, 128)
        assert theme.file_color == (1, 2, 3)

    @pytest.mark.parametrize("color", ["#fff", "#gggggg", [1, 2], [0, 0, 256], [-1, 0, 0]])
    def test_invalid_colors(self, color):
        with pytest.raises(ValidationError):
            ThemeConfig(special_color=color)

    def test_to_dict_uses_lists(self):
        assert ThemeConfig().to_dict()['folder_color'] == [255, 209, 84]


class TestFinderConfig:
    """Test cases for FinderConfig."""

    def setup_method(self):
        self.temp_dir = os.path.realpath(tempfile.mkdtemp())

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_defaults(self):
        config = FinderConfig()
        assert config.default_path == str(Path.home().resolve())
        assert config.ignore == DEFAULT_IGNORE_PATTERNS
        assert config.search == SearchConfig()

    def test_default_path_normalization(self):
        config = FinderConfig(default_path=os.path.join(self.temp_dir, "a", "..", "b"))
        assert config.default_path == os.path.join(self.temp_dir, "b")

    def test_empty_default_path(self):
        with pytest.raises(ValidationError):
            FinderConfig(default_path="")

    def test_validate_configuration_clean(self):
        config = FinderConfig(
            default_path=self.temp_dir,
            tags={'index_path': os.path.join(self.temp_dir, "state", "tags.yaml")},
        )
        assert config.validate_configuration() == []
        assert os.path.isdir(os.path.join(self.temp_dir, "state"))

    def test_validate_configuration_warnings(self):
        config = FinderConfig(
            default_path=os.path.join(self.temp_dir, "missing"),
            search={'thread_count': 100, 'channel_capacity': 8, 'results_per_tick': 16, 'max_queue_length': 50},
            tags={'index_path': os.path.join(self.temp_dir, "tags.yaml")},
        )
        warnings = config.validate_configuration()
        assert any("Default path" in w for w in warnings)
        assert any("thread_count" in w for w in warnings)
        assert any("channel_capacity" in w for w in warnings)
        assert any("max_queue_length" in w for w in warnings)

    def test_to_dict_round_trip(self):
        config = FinderConfig(
            default_path=self.temp_dir,
            ignore=["*.bak"],
            search={'max_depth': 4},
            theme={'bg_color': "#000000"},
        )
        data = config.to_dict()
        assert data['theme']['bg_color'] == [0, 0, 0]
        assert data['search']['max_depth'] == 4

        restored = FinderConfig.from_dict(data)
        assert restored.to_dict() == data

    def test_str_representation(self):
        text = str(FinderConfig(default_path=self.temp_dir))
        assert f"Default path: {self.temp_dir}" in text
        assert "Threads: 4" in text


class TestValidateConfigDict:
    """Test cases for validate_config_dict."""

    def test_empty_dict_gives_defaults(self):
        data = validate_config_dict({})
        assert data['search']['thread_count'] == 4

    def test_null_sections_use_defaults(self):
        data = validate_config_dict({'search': None, 'ignore': None})
        assert data['ignore'] == DEFAULT_IGNORE_PATTERNS

    def test_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown configuration keys: roots"):
            validate_config_dict({'roots': ["/"]})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="Section 'search' must be a mapping"):
            validate_config_dict({'search': [1, 2]})

    def test_ignore_must_be_list(self):
        with pytest.raises(ValueError, match="'ignore' must be a list"):
            validate_config_dict({'ignore': "*.tmp"})

    def test_invalid_values(self):
        with pytest.raises(ValueError, match="Configuration validation failed"):
            validate_config_dict({'search': {'thread_count': 0}})
