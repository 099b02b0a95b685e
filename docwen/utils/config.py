"""Configuration management for docwen."""

import logging
import os
from pathlib import Path
from typing import Union

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from docwen.analyzer.config import ComparatorConfig
from docwen.matcher import MatchMode

from .errors import ConfigurationError
from .grouping import discover_files, group_by_stem, normalize_extension

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "docwen.yaml"
CONFIG_ENV_VAR = "DOCWEN_CONFIG"
DEFAULT_EXTENSIONS = ["h", "c", "hpp", "cc", "cpp"]


class Settings(BaseModel):
    """Project-wide settings."""

    model_config = ConfigDict(extra="forbid")

    target: str = Field(
        default="src", description="Directory scanned by `update`, relative to the file"
    )
    match_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXTENSIONS),
        description="Extensions of files that take part in grouping",
    )
    mode: MatchMode = Field(
        default=MatchMode.QUALIFIED, description="Whether scope paths are compared"
    )
    ignore: list[str] = Field(
        default_factory=list, description="File stems never grouped"
    )
    strip_comment_markers: bool = Field(
        default=True, description="Compare comment content rather than raw lines"
    )
    case_sensitive: bool = Field(default=True, description="Compare case-sensitively")
    report_unmatched: bool = Field(
        default=False, description="Flag documented functions found in one file only"
    )
    max_doc_gap_lines: int = Field(
        default=1, ge=0, le=10, description="Blank lines allowed below a doc comment"
    )

    @field_validator("match_extensions")
    @classmethod
    def normalize_extensions(cls, extensions: list[str]) -> list[str]:
        """Store extensions lower-cased and without a leading dot."""
        normalized = []
        for extension in extensions:
            value = normalize_extension(extension)
            if not value:
                raise ValueError("Extensions cannot be empty")
            if value not in normalized:
                normalized.append(value)
        return normalized

    @field_validator("ignore")
    @classmethod
    def normalize_ignore(cls, stems: list[str]) -> list[str]:
        return [stem.lower() for stem in stems]


class FileGroup(BaseModel):
    """A named set of files compared together."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Unique group name")
    files: list[str] = Field(default_factory=list, description="Member files")


class DocwenConfig(BaseModel):
    """Complete configuration for docwen."""

    model_config = ConfigDict(extra="forbid")

    settings: Settings = Field(default_factory=Settings)
    filegroups: list[FileGroup] = Field(default_factory=list)

    @field_validator("filegroups")
    @classmethod
    def validate_unique_names(cls, groups: list[FileGroup]) -> list[FileGroup]:
        """Filegroup names must be unique."""
        seen: set[str] = set()
        for group in groups:
            if group.name in seen:
                raise ValueError(f"Duplicate filegroup name: {group.name}")
            seen.add(group.name)
        return groups

    @classmethod
    def from_yaml(cls, file_path: Union[str, Path]) -> "DocwenConfig":
        """Load configuration from YAML file."""
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {file_path}",
                recovery_hint="Start the file with a 'settings:' section",
            )
        return cls.model_validate(data)

    def to_yaml(self, file_path: Union[str, Path]) -> None:
        """Write configuration to a YAML file."""
        with open(file_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, sort_keys=False)

    def comparator_config(self) -> ComparatorConfig:
        """Comparison knobs for the doc comparator."""
        return ComparatorConfig(
            strip_comment_markers=self.settings.strip_comment_markers,
            case_sensitive=self.settings.case_sensitive,
            report_unmatched=self.settings.report_unmatched,
            max_doc_gap_lines=self.settings.max_doc_gap_lines,
        )

    def target_root(self, base_dir: Union[str, Path]) -> Path:
        """The scanned directory, resolved against the configuration's directory."""
        return _resolve(base_dir, self.settings.target)

    def resolved_groups(self, base_dir: Union[str, Path]) -> list[FileGroup]:
        """Filegroups with every file path made absolute."""
        return [
            FileGroup(
                name=group.name,
                files=[str(_resolve(base_dir, path)) for path in group.files],
            )
            for group in self.filegroups
        ]

    def merge_groups(self, groups: list[FileGroup]) -> None:
        """Replace groups with the same name, append new ones, keep the rest."""
        for group in groups:
            for index, existing in enumerate(self.filegroups):
                if existing.name == group.name:
                    self.filegroups[index] = group
                    break
            else:
                self.filegroups.append(group)


def _resolve(base_dir: Union[str, Path], path: str) -> Path:
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return Path(os.path.normpath(Path(base_dir).resolve() / candidate))


def default_config_path() -> Path:
    """Configuration path from DOCWEN_CONFIG, else ./docwen.yaml."""
    return Path(os.environ.get(CONFIG_ENV_VAR) or CONFIG_FILENAME)


def create_default_config(path: Union[str, Path]) -> DocwenConfig:
    """
    Write a default configuration file.

    Raises:
        ConfigurationError: If the file already exists or cannot be written
    """
    path = Path(path)
    config = DocwenConfig()
    data = yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)
    try:
        with open(path, "x", encoding="utf-8") as f:
            f.write(data)
    except FileExistsError:
        raise ConfigurationError(
            f"Configuration already exists: {path}",
            recovery_hint="Edit the existing file or run 'docwen update'",
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to create configuration at {path}: {e}",
            recovery_hint="Check that the directory exists and is writable",
        )
    logger.info(f"Created default configuration at {path}")
    return config


def load_config(path: Union[str, Path]) -> DocwenConfig:
    """
    Read and validate a configuration file.

    Raises:
        ConfigurationError: If the file is missing, is not YAML or is invalid
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            recovery_hint="Run 'docwen create' to write a default configuration",
        )
    try:
        return DocwenConfig.from_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}: {e}",
            recovery_hint="Fix the YAML syntax and try again",
        )
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'root'}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(
            f"Invalid configuration in {path}: {problems}",
            recovery_hint="Compare the file with the output of 'docwen create'",
        )


def save_config(config: DocwenConfig, path: Union[str, Path]) -> None:
    """Write a configuration back to disk."""
    try:
        config.to_yaml(path)
    except OSError as e:
        raise ConfigurationError(f"Failed to write configuration to {path}: {e}")
    logger.info(f"Saved configuration to {path}")


def discover_groups(config: DocwenConfig, base_dir: Union[str, Path]) -> list[FileGroup]:
    """
    Group the files below the target directory by stem.

    Only groups with more than one file are returned. Paths are stored
    relative to ``base_dir`` when they lie below it.
    """
    root = config.target_root(base_dir)
    base = Path(base_dir).resolve()
    grouped = group_by_stem(
        discover_files(root),
        config.settings.match_extensions,
        config.settings.ignore,
    )

    groups = []
    for name, files in grouped.items():
        if len(files) < 2:
            continue
        groups.append(
            FileGroup(name=name, files=[_relative_to(base, path) for path in files])
        )
    return groups


def _relative_to(base: Path, path: Path) -> str:
    resolved = path.resolve()
    try:
        return resolved.relative_to(base).as_posix()
    except ValueError:
        return str(resolved)


def update_config(path: Union[str, Path]) -> DocwenConfig:
    """
    Rediscover filegroups and merge them into the configuration file.

    Returns:
        The updated configuration, already saved
    """
    path = Path(path)
    config = load_config(path)
    base_dir = path.resolve().parent
    groups = discover_groups(config, base_dir)
    config.merge_groups(groups)
    save_config(config, path)
    logger.info(f"Updated {path}: {len(groups)} groups discovered")
    return config
