"""Parse many files, one result per file.

A failure in one file never stops the batch: each file yields either its
namespaces or the error that aborted its parse.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from phpdecl.ast_nodes import Namespace
from phpdecl.config import ScanConfig
from phpdecl.errors import CompileError, SourceReadError
from phpdecl.parser import parse_file

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    path: Path
    namespaces: list[Namespace] | None = None
    error: CompileError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def collect_files(root: Path, scan: ScanConfig | None = None) -> list[Path]:
    """Source files under *root*, sorted, honoring extension and exclude lists."""
    scan = scan or ScanConfig()
    if root.is_file():
        return [root]
    extensions = {ext.lower() for ext in scan.extensions}
    excluded = set(scan.exclude)
    files: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in extensions:
            continue
        if excluded.intersection(path.relative_to(root).parts[:-1]):
            logger.debug("skipping excluded %s", path)
            continue
        files.append(path)
    return files


def parse_one(path: Path) -> ParseResult:
    try:
        namespaces = parse_file(path)
    except CompileError as e:
        logger.info("failed to parse %s: %s", path, e)
        return ParseResult(path, error=e)
    except OSError as e:
        logger.warning("cannot read %s: %s", path, e)
        return ParseResult(path, error=SourceReadError(path, e))
    logger.debug("parsed %s (%d namespace(s))", path, len(namespaces))
    return ParseResult(path, namespaces=namespaces)


def parse_many(paths: Iterable[Path]) -> Iterator[ParseResult]:
    for path in paths:
        yield parse_one(path)
