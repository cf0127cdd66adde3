"""Centralized configuration for frontpack builds.

Configuration lives in ``frontpack.toml`` (``frontpack.yml`` is accepted as
well) at the project root or any parent directory.

Priority (highest to lowest):
1. CLI overrides (applied with ``FrontpackConfig.with_overrides``)
2. Environment variables (``FRONTPACK_SECTION__KEY``, e.g. ``FRONTPACK_PATHS__OUTPUT``)
3. Config file
4. Defaults
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from frontpack.config.exceptions import ConfigLoadError, ConfigValidationError, MissingEntryError
from frontpack.pipelines.markup import DEFAULT_BROWSER_WARNING_TEMPLATE
from frontpack.pipelines.script import DEFAULT_SCRIPT_EXTENSIONS
from frontpack.pipelines.style import DEFAULT_STYLE_EXTENSIONS

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("frontpack.toml", "frontpack.yml", "frontpack.yaml")
DEFAULT_OUTPUT_DIR = "dist"


class PathsSettings(BaseModel):
    """Project root and output directory (relative to the config file)."""

    root: Path = Field(default=Path("."), description="Base for root-relative references")
    output: Path = Field(default=Path(DEFAULT_OUTPUT_DIR), description="Build output directory")


class BuildSettings(BaseModel):
    """Entry points and the assets to relocate."""

    script_entry: str | None = Field(default=None, description="JavaScript entry point")
    style_entry: str | None = Field(default=None, description="CSS entry point")
    markup_entry: str | None = Field(default=None, description="HTML entry point")
    assets: list[str] = Field(
        default_factory=list,
        description="Asset paths; a leading '/' means relative to the root path",
    )


def _validate_extensions(values: list[str]) -> list[str]:
    for value in values:
        if not value.startswith("."):
            msg = f"Extension {value!r} must start with '.'"
            raise ValueError(msg)
    return values


class ScriptSettings(BaseModel):
    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_SCRIPT_EXTENSIONS))

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        return _validate_extensions(v)


class StyleSettings(BaseModel):
    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_STYLE_EXTENSIONS))
    optimize: bool = Field(default=True, description="Minify inlined CSS with rcssmin")

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        return _validate_extensions(v)


class MarkupSettings(BaseModel):
    browser_warning_template: str = Field(
        default=DEFAULT_BROWSER_WARNING_TEMPLATE,
        description="Fragment injected at <!-- build:browser-warning -->, relative to the root path",
    )


class StaticSettings(BaseModel):
    replacements: dict[str, str] = Field(
        default_factory=dict,
        description="Literal replacements applied to script, style and markup after relocation",
    )


class FrontpackConfig(BaseSettings):
    """Root configuration for frontpack."""

    paths: PathsSettings = Field(default_factory=PathsSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    script: ScriptSettings = Field(default_factory=ScriptSettings)
    style: StyleSettings = Field(default_factory=StyleSettings)
    markup: MarkupSettings = Field(default_factory=MarkupSettings)
    static: StaticSettings = Field(default_factory=StaticSettings)

    model_config = SettingsConfigDict(
        env_prefix="FRONTPACK_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; environment variables must win over them.
        return (env_settings, init_settings)

    def with_overrides(self, **overrides: Any) -> FrontpackConfig:
        """Return a copy with CLI overrides applied; ``None`` values are ignored.

        Recognized keys: ``root``, ``output`` and the ``BuildSettings`` fields.
        """
        paths_update = {key: Path(value) for key in ("root", "output") if (value := overrides.get(key)) is not None}
        build_update = {
            key: value
            for key in ("script_entry", "style_entry", "markup_entry", "assets")
            if (value := overrides.get(key)) is not None
        }
        return self.model_copy(
            update={
                "paths": self.paths.model_copy(update=paths_update),
                "build": self.build.model_copy(update=build_update),
            }
        )

    def require_entries(self) -> tuple[str, str, str]:
        """Return the three entry points or raise ``MissingEntryError``."""
        entries = []
        for field_name in ("script_entry", "style_entry", "markup_entry"):
            value = getattr(self.build, field_name)
            if not value:
                raise MissingEntryError(field_name)
            entries.append(value)
        return entries[0], entries[1], entries[2]


def find_config(start: Path | None = None) -> Path | None:
    """Search ``start`` and its parents for a frontpack config file."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        for filename in CONFIG_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
    return None


def _parse_config_file(config_path: Path) -> dict[str, Any]:
    try:
        raw_config = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(config_path, str(exc)) from exc

    try:
        if config_path.suffix == ".toml":
            return tomllib.loads(raw_config)
        return yaml.safe_load(raw_config) or {}
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigLoadError(config_path, str(exc)) from exc


def _anchor_paths(config: FrontpackConfig, base_dir: Path) -> FrontpackConfig:
    """Make the root, output and entry paths absolute against ``base_dir``."""

    def _anchor(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    build_update = {
        key: str(_anchor(Path(value)))
        for key in ("script_entry", "style_entry", "markup_entry")
        if (value := getattr(config.build, key))
    }
    return config.model_copy(
        update={
            "paths": config.paths.model_copy(
                update={"root": _anchor(config.paths.root), "output": _anchor(config.paths.output)}
            ),
            "build": config.build.model_copy(update=build_update),
        }
    )


def load_config(config_path: Path | None = None, start: Path | None = None) -> FrontpackConfig:
    """Load and validate the frontpack configuration.

    Args:
        config_path: Explicit config file. When None, ``find_config(start)`` is used.
        start: Directory to start searching from (defaults to the working directory).

    Returns:
        Validated configuration with root, output and entry paths made absolute
        relative to the config file's directory (or the working directory when
        no file exists).

    Raises:
        ConfigLoadError: If the file cannot be read or parsed.
        ConfigValidationError: If the merged configuration is invalid.

    """
    if config_path is None:
        config_path = find_config(start)

    file_data: dict[str, Any] = {}
    base_dir = (start or Path.cwd()).resolve()
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigLoadError(config_path, "file does not exist")
        logger.debug("Loading config from %s", config_path)
        file_data = _parse_config_file(config_path)
        base_dir = config_path.resolve().parent
    else:
        logger.debug("No frontpack config found; using defaults")

    try:
        config = FrontpackConfig(**file_data)
    except ValidationError as e:
        for error in e.errors():
            loc = " -> ".join(str(location_part) for location_part in error["loc"])
            logger.error("  %s: %s", loc, error["msg"])
        raise ConfigValidationError(e.errors()) from e

    return _anchor_paths(config, base_dir)


__all__ = [
    "BuildSettings",
    "FrontpackConfig",
    "MarkupSettings",
    "PathsSettings",
    "ScriptSettings",
    "StaticSettings",
    "StyleSettings",
    "find_config",
    "load_config",
]
