"""TOML config loading for phpdecl.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "phpdecl.toml"


@dataclass
class ScanConfig:
    paths: list[str] = field(default_factory=lambda: ["."])
    extensions: list[str] = field(default_factory=lambda: [".php"])
    exclude: list[str] = field(default_factory=lambda: [".git", "vendor"])


@dataclass
class OutputConfig:
    color: bool = True


@dataclass
class PhpdeclConfig:
    scan: ScanConfig = field(default_factory=ScanConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    root: Path | None = None


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find phpdecl.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> PhpdeclConfig:
    """Parse a phpdecl.toml file into a PhpdeclConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = PhpdeclConfig(root=path.parent)

    if "scan" in data:
        scan = data["scan"]
        defaults = ScanConfig()
        config.scan = ScanConfig(
            paths=scan.get("paths", defaults.paths),
            extensions=[_dotted(ext) for ext in scan.get("extensions", defaults.extensions)],
            exclude=scan.get("exclude", defaults.exclude),
        )

    if "output" in data:
        config.output = OutputConfig(color=data["output"].get("color", True))

    return config


def _dotted(ext: str) -> str:
    return ext if ext.startswith(".") else f".{ext}"
