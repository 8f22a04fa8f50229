"""
Configuration system for PDF Engine.

Provides structured configuration using dataclasses with clear defaults,
type safety, and backward compatibility with dict-based configs.
"""

from dataclasses import dataclass, fields
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


def _filter_known_keys(cls, config: Dict[str, Any]) -> Dict[str, Any]:
    """Keep keys that are dataclass fields of `cls`, warning about the rest."""
    valid_keys = {f.name for f in fields(cls)}
    filtered_config = {}
    for key, value in config.items():
        if key in valid_keys:
            filtered_config[key] = value
        else:
            logger.warning(f"Unknown config key '{key}' will be ignored")
    return filtered_config


@dataclass
class PageActionOptions:
    """
    Configuration options for drawing page actions.

    The text face is fixed (Times-Roman). Image encoding, where image files
    may be read from and the treatment of existing page content are
    configurable.
    """
    jpeg_quality: int = 75  # Quality used when re-encoding images as JPEG
    isolate_existing_content: bool = True  # Wrap existing content in q/Q before appending
    image_root: Optional[str] = None  # Directory imagePath must resolve inside; None = unrestricted

    def validate(self) -> bool:
        """
        Validate configuration options.

        Returns:
            True if configuration is valid, False otherwise
        """
        if not 1 <= self.jpeg_quality <= 100:
            logger.error("jpeg_quality must be between 1 and 100")
            return False
        if self.image_root is not None and not self.image_root:
            logger.error("image_root must be a non-empty path or None")
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'jpeg_quality': self.jpeg_quality,
            'isolate_existing_content': self.isolate_existing_content,
            'image_root': self.image_root,
        }

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'PageActionOptions':
        """Create options from dictionary; unknown keys are ignored with a warning."""
        return cls(**_filter_known_keys(cls, config or {}))


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization.

    Example:
        >>> config = EngineConfig(max_file_size_mb=20)
        >>> engine = PDFEngine(file_path, config=config)
    """

    # Processor-specific options (as dictionaries for flexibility)
    page_action_options: Optional[Dict[str, Any]] = None

    # Validation
    max_file_size_mb: int = 50
    validate_on_open: bool = True

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if not PageActionOptions.from_dict(self.page_action_options).validate():
            return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Useful for serialization, logging, and debugging.
        """
        return {
            'page_action_options': self.page_action_options,
            'max_file_size_mb': self.max_file_size_mb,
            'validate_on_open': self.validate_on_open,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from dictionary.

        Unknown keys are ignored with a warning.

        Args:
            config: Dictionary of configuration values

        Returns:
            EngineConfig instance
        """
        return cls(**_filter_known_keys(cls, config))

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"EngineConfig("
            f"validate_on_open={self.validate_on_open}, "
            f"max_file_size={self.max_file_size_mb}MB)"
        )
