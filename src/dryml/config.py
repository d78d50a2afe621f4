"""Compiler options and dryml.toml loading."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "dryml.toml"


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Options that shape generated source."""

    # Wrap definitions, calls and parameters in <!--[DRYML|...[--> comments
    include_source_metadata: bool = False
    # Additional element names treated as plain HTML
    extra_static_tags: tuple[str, ...] = ()
    # Symbolic field type name -> Ruby class name, for <def for="...">
    field_types: dict[str, str] = field(default_factory=dict)
    # _Name_ -> concrete class name, for bundle-relative <def for="_Name_">
    bundle_classes: dict[str, str] = field(default_factory=dict)
    # Prefix stripped from template paths before they are used as cache keys
    root: Path | None = None


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_FILENAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def options_from_config(config: dict[str, Any]) -> CompileOptions:
    """Build CompileOptions from a loaded config mapping, ignoring malformed entries."""
    include_metadata = False
    root: Path | None = None
    cfg_compiler = config.get("compiler")
    if isinstance(cfg_compiler, dict):
        include_metadata = bool(cfg_compiler.get("include_source_metadata", False))
        cfg_root = cfg_compiler.get("root")
        if isinstance(cfg_root, str):
            root = Path(cfg_root)

    extra_static: list[str] = []
    cfg_static = config.get("static_tags")
    if isinstance(cfg_static, dict):
        cfg_extra = cfg_static.get("extra")
        if isinstance(cfg_extra, list):
            extra_static.extend(str(t) for t in cfg_extra)

    field_types: dict[str, str] = {}
    cfg_types = config.get("field_types")
    if isinstance(cfg_types, dict):
        for k, v in cfg_types.items():
            field_types[str(k)] = str(v)

    bundle: dict[str, str] = {}
    cfg_bundle = config.get("bundle")
    if isinstance(cfg_bundle, dict):
        for k, v in cfg_bundle.items():
            bundle[str(k)] = str(v)

    return CompileOptions(
        include_source_metadata=include_metadata,
        extra_static_tags=tuple(extra_static),
        field_types=field_types,
        bundle_classes=bundle,
        root=root,
    )
