"""
Configuration data models for Tag Finder.

This module defines the typed configuration consumed by the search core:
search tunables (worker count, queue cap, channel capacity), ignore patterns,
the location of the persisted tag index, and the color theme handed to the UI.
"""

from typing import Dict, List, Optional, Any, Tuple
from pathlib import Path
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from ..tools.ignore import IgnoreMatcher


DEFAULT_IGNORE_PATTERNS = [
    "**/.git/**",
    "**/.svn/**",
    "**/.hg/**",
    "**/node_modules/**",
    "**/__pycache__/**",
    "**/.pytest_cache/**",
    "**/.venv/**",
]

DEFAULT_INDEX_PATH = "~/.config/tagfinder/tags.yaml"

RGB = Tuple[int, int, int]


class SearchConfig(BaseModel):
    """
    Tunables for the concurrent search engine.

    Attributes:
        thread_count: Number of traversal worker threads
        max_queue_length: Soft cap on directories pending expansion
        channel_capacity: Results buffered before workers block
        max_results: Number of ranked results the UI displays
        results_per_tick: Results the UI drains per refresh
        max_depth: Maximum directory depth below the search base
        follow_symlinks: Whether to descend into symlinked directories
        ignored_extensions: Extensions that are never reported
    """

    thread_count: int = Field(4, ge=1, description="Number of traversal worker threads")
    max_queue_length: int = Field(512, ge=1, description="Soft cap on pending directories")
    channel_capacity: int = Field(256, ge=1, description="Result channel capacity")
    max_results: int = Field(30, ge=1, description="Number of ranked results to keep")
    results_per_tick: int = Field(64, ge=1, description="Results drained per UI refresh")
    max_depth: Optional[int] = Field(None, ge=0, description="Maximum traversal depth")
    follow_symlinks: bool = Field(True, description="Descend into symlinked directories")
    ignored_extensions: List[str] = Field(default_factory=list, description="Extensions never reported")

    @field_validator('ignored_extensions', mode='before')
    @classmethod
    def validate_ignored_extensions(cls, v) -> List[str]:
        """Normalize to lowercase extensions without a leading dot."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.replace(',', ' ').split()
        normalized = []
        for ext in v:
            ext = str(ext).strip().lstrip('.').lower()
            if ext and ext not in normalized:
                normalized.append(ext)
        return normalized

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class TagsConfig(BaseModel):
    """
    Configuration for the persisted tag index.

    Attributes:
        index_path: YAML file holding every tag and its entries
    """

    index_path: str = Field(DEFAULT_INDEX_PATH, description="Location of the tag index file")

    @field_validator('index_path')
    @classmethod
    def validate_index_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Tag index path cannot be empty")
        return str(Path(v).expanduser())

    def get_index_path(self) -> Path:
        """Get the resolved path of the tag index file."""
        return Path(self.index_path).resolve()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ThemeConfig(BaseModel):
    """Colors handed to the terminal UI."""

    folder_color: RGB = Field((255, 209, 84), description="Directory entries")
    file_color: RGB = Field((206, 217, 214), description="File entries")
    special_color: RGB = Field((110, 209, 255), description="Highlights")
    bg_color: RGB = Field((35, 47, 54), description="Background")

    @field_validator('folder_color', 'file_color', 'special_color', 'bg_color', mode='before')
    @classmethod
    def validate_color(cls, v) -> RGB:
        """Accept [r, g, b] lists or '#rrggbb' strings."""
        if isinstance(v, str):
            hex_value = v.lstrip('#')
            if len(hex_value) != 6:
                raise ValueError(f"Invalid color: {v}")
            try:
                v = tuple(int(hex_value[i:i + 2], 16) for i in (0, 2, 4))
            except ValueError:
                raise ValueError(f"Invalid color: {v}")
        v = tuple(v)
        if len(v) != 3 or any(not 0 <= int(c) <= 255 for c in v):
            raise ValueError(f"Color must be three components in 0-255, got {v}")
        return tuple(int(c) for c in v)

    def to_dict(self) -> Dict[str, Any]:
        return {name: list(value) for name, value in self.model_dump().items()}


class FinderConfig(BaseModel):
    """
    Main configuration class for Tag Finder.

    The core only consumes these values; the surrounding application loads
    them at startup and again on reload.

    Attributes:
        default_path: Directory searched when the UI supplies no root
        ignore: Gitignore-style patterns excluded from traversal
        search: Search engine tunables
        tags: Tag index persistence settings
        theme: Color theme for the UI
    """

    default_path: str = Field(default_factory=lambda: str(Path.home()), description="Default search root")
    ignore: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS),
        description="List of ignore patterns (gitignore-style)"
    )
    search: SearchConfig = Field(default_factory=SearchConfig, description="Search engine tunables")
    tags: TagsConfig = Field(default_factory=TagsConfig, description="Tag index settings")
    theme: ThemeConfig = Field(default_factory=ThemeConfig, description="Color theme")

    _ignore_matcher: IgnoreMatcher = PrivateAttr(default=None)

    @field_validator('default_path')
    @classmethod
    def validate_default_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Default path cannot be empty")
        return str(Path(v).expanduser().resolve())

    @field_validator('ignore', mode='before')
    @classmethod
    def validate_ignore(cls, v) -> List[str]:
        """Drop blank patterns and surrounding whitespace."""
        if v is None:
            return []
        return [str(pattern).strip() for pattern in v if pattern and str(pattern).strip()]

    def model_post_init(self, __context) -> None:
        """Compile ignore patterns once."""
        self._ignore_matcher = IgnoreMatcher(self.ignore)

    @property
    def ignore_matcher(self) -> IgnoreMatcher:
        return self._ignore_matcher

    def should_ignore(self, path: str, is_dir: Optional[bool] = None) -> bool:
        """
        Check if a path should be ignored based on ignore patterns.

        Args:
            path: Path relative to the search base
            is_dir: Whether the path is a directory, if known

        Returns:
            True if path should be ignored, False otherwise
        """
        return self._ignore_matcher.should_ignore(path, is_dir)

    def is_extension_ignored(self, name: str) -> bool:
        """Check whether a file name carries one of the ignored extensions."""
        if not self.search.ignored_extensions:
            return False
        suffix = Path(name).suffix.lower().lstrip('.')
        return bool(suffix) and suffix in self.search.ignored_extensions

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any warnings."""
        warnings = []

        default_path = Path(self.default_path)
        if not default_path.is_dir():
            warnings.append(f"Default path is not an accessible directory: {self.default_path}")

        try:
            self.tags.get_index_path().parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            warnings.append(f"Cannot create tag index directory: {self.tags.index_path}")

        if self.search.thread_count > 64:
            warnings.append(f"Very high thread_count ({self.search.thread_count}) may slow traversal down")

        if self.search.channel_capacity < self.search.results_per_tick:
            warnings.append("channel_capacity is smaller than results_per_tick; workers will block often")

        if self.search.max_queue_length < self.search.thread_count:
            warnings.append("max_queue_length is smaller than thread_count; some workers will stay idle")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        data = self.model_dump()
        data['search'] = self.search.to_dict()
        data['tags'] = self.tags.to_dict()
        data['theme'] = self.theme.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create configuration from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        parts = [f"Default path: {self.default_path}"]
        parts.append(f"Ignore patterns: {len(self.ignore)}")
        parts.append(f"Threads: {self.search.thread_count}")
        parts.append(f"Queue cap: {self.search.max_queue_length}")
        parts.append(f"Tag index: {self.tags.index_path}")
        return " | ".join(parts)


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary.

    Args:
        config_data: Dictionary containing configuration data

    Returns:
        Normalized configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    known_sections = {'default_path', 'ignore', 'search', 'tags', 'theme'}
    # Keys left empty in YAML fall back to their defaults
    config_data = {key: value for key, value in config_data.items() if value is not None}
    unknown = set(config_data) - known_sections
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    for section in ('search', 'tags', 'theme'):
        value = config_data.get(section)
        if value is not None and not isinstance(value, dict):
            raise ValueError(f"Section '{section}' must be a mapping, got {type(value).__name__}")

    ignore = config_data.get('ignore')
    if ignore is not None and not isinstance(ignore, list):
        raise ValueError(f"'ignore' must be a list of patterns, got {type(ignore).__name__}")

    try:
        validated = FinderConfig.from_dict(config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    return validated.to_dict()
