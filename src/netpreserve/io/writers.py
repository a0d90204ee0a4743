"""
Writers for module preservation results.

Output files (one directory per run):
    observed.csv        modules × statistics
    nulls.csv           null distributions in long form
                        (module, statistic, permutation, value)
    pvalues.csv         permutation p-values, modules × statistics
    qvalues.csv         FDR-adjusted p-values across modules
    run_summary.json    settings and completion counts

Every file is written atomically: content goes to a temporary file in the
destination directory which is then moved into place with ``os.replace()``,
so an interrupted run never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from netpreserve.stats.permutation import PreservationResult
from netpreserve.stats.properties import ModuleProperties
from netpreserve.stats.significance import adjust_pvalues, permutation_pvalues

logger = logging.getLogger(__name__)

__all__ = [
    'atomic_write_text',
    'atomic_write_json',
    'write_preservation_result',
    'write_network_properties',
]

MISSING_REP = "NA"


def atomic_write_text(path: str | os.PathLike, content: str) -> None:
    """
    Write *content* as text atomically via temp-file + rename.

    Every result file goes through here, so a run interrupted while writing
    leaves either the previous file or the complete new one, never a
    truncated CSV. The temp file is removed if the write fails.
    """
    path = str(path)
    dir_path = os.path.dirname(path) or "."
    tmp_path: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=dir_path, suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_write_json(path: str | os.PathLike, data: Any, *, indent: int = 2) -> None:
    """Write *data* as JSON atomically."""
    atomic_write_text(path, json.dumps(data, indent=indent))


def _write_frame(frame: pd.DataFrame, path: Path, index: bool = True) -> None:
    atomic_write_text(path, frame.to_csv(index=index, na_rep=MISSING_REP))
    logger.info(f"Wrote {path}")


def write_preservation_result(
    result: PreservationResult,
    output_dir: Path,
    alternative: str = "greater",
    settings: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Path]:
    """
    Write observed statistics, null distributions and p-values.

    Args:
        result: Output of run_permutation_procedure()
        output_dir: Directory to write into (created if needed)
        alternative: Alternative hypothesis for the p-values
        settings: Optional run settings recorded in run_summary.json

    Returns:
        Mapping of output name → path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        'observed': output_dir / "observed.csv",
        'nulls': output_dir / "nulls.csv",
        'pvalues': output_dir / "pvalues.csv",
        'qvalues': output_dir / "qvalues.csv",
        'summary': output_dir / "run_summary.json",
    }

    pvalues = permutation_pvalues(result, alternative=alternative)
    _write_frame(result.observed, paths['observed'])
    _write_frame(result.to_long_frame(), paths['nulls'], index=False)
    _write_frame(pvalues, paths['pvalues'])
    _write_frame(adjust_pvalues(pvalues), paths['qvalues'])

    summary = {
        'modules': list(result.modules),
        'statistics': list(result.statistics),
        'n_permutations': result.n_permutations,
        'n_completed': result.n_completed,
        'completed_per_thread': list(result.completed),
        'cancelled': result.cancelled,
        'null': result.null,
        'alternative': alternative,
        'settings': dict(settings) if settings is not None else {},
    }
    atomic_write_json(paths['summary'], summary)
    logger.info(f"Wrote {paths['summary']}")
    return paths


def write_network_properties(
    properties: Mapping[str, ModuleProperties],
    output_dir: Path,
) -> Dict[str, Path]:
    """
    Write per-module network properties.

    Produces ``nodes.csv`` (module, node, degree, contribution),
    ``modules.csv`` (module-level scalars) and, when available,
    ``summary_profiles.csv`` (samples × modules).
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        'nodes': output_dir / "nodes.csv",
        'modules': output_dir / "modules.csv",
    }

    node_frames = []
    for module, props in properties.items():
        frame = pd.DataFrame({'degree': props.degree})
        if props.contribution is not None:
            frame['contribution'] = props.contribution
        frame.insert(0, 'module', module)
        node_frames.append(frame.reset_index())
    if node_frames:
        nodes = pd.concat(node_frames, ignore_index=True)
    else:
        nodes = pd.DataFrame(columns=['node', 'module', 'degree'])
    _write_frame(nodes, paths['nodes'], index=False)

    modules = pd.DataFrame.from_dict(
        {module: props.to_dict() for module, props in properties.items()},
        orient='index',
    )
    modules.index.name = 'module'
    _write_frame(modules, paths['modules'])

    profiles = {
        module: props.summary
        for module, props in properties.items()
        if props.summary is not None
    }
    if profiles:
        paths['summary_profiles'] = output_dir / "summary_profiles.csv"
        _write_frame(pd.DataFrame(profiles), paths['summary_profiles'])

    return paths
