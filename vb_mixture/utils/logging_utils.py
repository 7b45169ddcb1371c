"""
Training Run Logging Utilities

Persists summaries of VB runs (TrainingState.to_dict()) to disk as JSON
lines so that repeated experiments can be compared afterwards.

Example usage:
    >>> logger = TrainingLogger(base_dir='results')
    >>> model, training = VBMixture.from_template(comp, 2).vb_batch(X)
    >>> logger.log_run(training, experiment='two_clusters', regime='batch', seed=0)
    >>> results = logger.load_results('two_clusters', 'batch')
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from vb_mixture.utils.metrics import summarize_runs


class NumpyEncoder(json.JSONEncoder):
    """
    JSON encoder that handles numpy types.

    Arrays become lists, numpy scalars become Python scalars and
    non-finite floats are written as strings ('inf', '-inf', 'nan').
    """

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


class TrainingLogger:
    """
    Logger for saving and loading VB run summaries.

    Directory structure:
        results/
        ├── two_clusters/
        │   ├── batch.jsonl
        │   └── online.jsonl
        └── drift/
            └── nonstationary.jsonl

    Attributes:
        base_dir: Root directory for all results.
    """

    def __init__(self, base_dir: str = 'results'):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _results_file(self, experiment: str, regime: str) -> Path:
        experiment_dir = self.base_dir / experiment
        experiment_dir.mkdir(parents=True, exist_ok=True)
        safe_name = regime.replace(' ', '_').replace('/', '_')
        return experiment_dir / f"{safe_name}.jsonl"

    def log_run(
        self,
        training: Any,
        experiment: str,
        regime: str = 'batch',
        include_memberships: bool = False,
        **metadata
    ) -> str:
        """
        Append one run record to disk.

        Args:
            training: TrainingState, or an already-built summary dict.
            experiment: Experiment name (directory).
            regime: 'batch', 'online', 'nonstationary' or any label (file).
            include_memberships: Store the responsibility matrix as well.
            **metadata: Extra fields stored with the record (seed, K, ...).

        Returns:
            The run_id assigned to this run.

        Raises:
            ValueError: If experiment or regime is empty.
        """
        if not experiment:
            raise ValueError("experiment must be a non-empty string")
        if not regime:
            raise ValueError("regime must be a non-empty string")

        if hasattr(training, 'to_dict'):
            record = training.to_dict(include_memberships=include_memberships)
        else:
            record = dict(training)

        record.update(metadata)
        record['experiment'] = experiment
        record['regime'] = regime
        record.setdefault('run_id', str(uuid.uuid4())[:8])
        record.setdefault('timestamp', datetime.now().isoformat())

        file_path = self._results_file(experiment, regime)
        with open(file_path, 'a') as f:
            f.write(json.dumps(_finite(record), cls=NumpyEncoder))
            f.write('\n')

        return record['run_id']

    def load_results(
        self,
        experiment: str,
        regime: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Load run records.

        Args:
            experiment: Experiment name.
            regime: Specific regime to load. If None, loads all regimes.

        Returns:
            List of run record dictionaries.
        """
        experiment_dir = self.base_dir / experiment
        if not experiment_dir.exists():
            return []

        if regime is not None:
            files = [self._results_file(experiment, regime)]
        else:
            files = sorted(experiment_dir.glob('*.jsonl'))

        results = []
        for file_path in files:
            if file_path.exists():
                results.extend(self._load_jsonl(file_path))
        return results

    def _load_jsonl(self, file_path: Path) -> List[Dict[str, Any]]:
        results = []
        with open(file_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line:
                    results.append(json.loads(line))
        return results

    def list_experiments(self) -> List[str]:
        return sorted(
            item.name for item in self.base_dir.iterdir()
            if item.is_dir() and not item.name.startswith('.')
        )

    def list_regimes(self, experiment: str) -> List[str]:
        experiment_dir = self.base_dir / experiment
        if not experiment_dir.exists():
            return []
        return sorted(p.stem for p in experiment_dir.glob('*.jsonl'))

    def summary_stats(self, experiment: str) -> Dict[str, Dict[str, Any]]:
        """
        Summary statistics per regime for one experiment.

        Example:
            >>> for regime, s in logger.summary_stats('two_clusters').items():
            ...     print(f"{regime}: {s['n_runs']} runs, converged {s['converged_rate']:.0%}")
        """
        return {
            regime: summarize_runs(self.load_results(experiment, regime))
            for regime in self.list_regimes(experiment)
        }

    def to_dataframe(self, experiment: str, regime: Optional[str] = None):
        """
        Load run records as a pandas DataFrame, one row per run.

        Per-iteration histories and other list fields are replaced by their
        length in a '<field>_len' column.

        Note:
            Requires pandas to be installed.
        """
        import pandas as pd

        rows = []
        for record in self.load_results(experiment, regime):
            row = {}
            for key, value in record.items():
                if isinstance(value, list):
                    row[f'{key}_len'] = len(value)
                else:
                    row[key] = value
            rows.append(row)

        return pd.DataFrame(rows)


def _finite(value: Any) -> Any:
    """Replace non-finite floats, which strict JSON cannot carry, with strings."""
    if isinstance(value, dict):
        return {k: _finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(v) for v in value]
    if isinstance(value, np.ndarray) and value.dtype.kind == 'f' and not np.all(np.isfinite(value)):
        return _finite(value.tolist())
    if isinstance(value, (float, np.floating)) and not np.isfinite(value):
        return str(float(value))
    return value
