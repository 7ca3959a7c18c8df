"""Chart loading.

Loads a chart from a local directory or packaged archive and reads its
Chart.yaml, so that a broken chart is reported before the cluster is
touched. Repository references are not resolved.
"""

from __future__ import annotations

import tarfile
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from wheelie.core.backend import LoadedChart
from wheelie.core.spec import PackageSource
from wheelie.errors import ChartLoadError

CHART_FILE = "Chart.yaml"
ARCHIVE_SUFFIXES = (".tgz", ".tar.gz")


def _parse_chart_metadata(text: str, source: str) -> dict[str, Any]:
    try:
        metadata = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ChartLoadError(f"Invalid {CHART_FILE}", details=f"{source}: {e}") from e
    if not isinstance(metadata, dict):
        raise ChartLoadError(f"Invalid {CHART_FILE}", details=f"{source}: not a mapping")
    if not metadata.get("name"):
        raise ChartLoadError(f"Invalid {CHART_FILE}", details=f"{source}: missing name")
    return metadata


def _read_directory(path: Path) -> dict[str, Any]:
    chart_file = path / CHART_FILE
    if not chart_file.is_file():
        raise ChartLoadError(
            "Chart not found", details=f"{path} does not contain {CHART_FILE}"
        )
    return _parse_chart_metadata(chart_file.read_text(encoding="utf-8"), str(chart_file))


def _read_archive(path: Path) -> dict[str, Any]:
    try:
        with tarfile.open(path, "r:gz") as archive:
            for member in archive.getmembers():
                parts = Path(member.name).parts
                # Top-level chart only: <chart>/Chart.yaml
                if len(parts) == 2 and parts[1] == CHART_FILE and member.isfile():
                    extracted = archive.extractfile(member)
                    if extracted is None:
                        break
                    text = extracted.read().decode("utf-8")
                    return _parse_chart_metadata(text, f"{path}:{member.name}")
    except (tarfile.TarError, OSError) as e:
        raise ChartLoadError("Unreadable chart archive", details=f"{path}: {e}") from e
    raise ChartLoadError(
        "Chart not found", details=f"{path} does not contain <chart>/{CHART_FILE}"
    )


def load_chart(source: PackageSource) -> LoadedChart:
    """Load and validate a chart.

    Args:
        source: Chart location and optional version selector

    Returns:
        LoadedChart with the chart's name and version

    Raises:
        ChartLoadError: If the chart is missing, malformed, or its version
            does not match the requested one
    """
    path = Path(source.path).expanduser()
    if not source.path or not path.exists():
        raise ChartLoadError(
            "Chart not found",
            details=f"{source.path!r} is not a local chart directory or archive",
        )

    if path.is_dir():
        metadata = _read_directory(path)
    elif path.name.endswith(ARCHIVE_SUFFIXES):
        metadata = _read_archive(path)
    else:
        raise ChartLoadError(
            "Unsupported chart source",
            details=f"{path} is neither a directory nor a {'/'.join(ARCHIVE_SUFFIXES)} archive",
        )

    version = str(metadata.get("version", ""))
    if source.version and source.version != version:
        raise ChartLoadError(
            "Chart version mismatch",
            details=f"requested {source.version}, {path} provides {version or 'none'}",
        )

    chart = LoadedChart(path=path, name=str(metadata["name"]), version=version)
    logger.debug(f"Loaded chart {chart.name} {chart.version} from {path}")
    return chart
