"""
Unit Tests for Utility Modules

Run with: pytest vb_mixture/tests/test_utils.py -v
"""

import time

import pytest
import numpy as np

from vb_mixture.algorithms import VBMixture, TrainingState
from vb_mixture.data import (
    generate_gmm_data, generate_cluster_data, generate_two_class_data, generate_drifting_stream
)
from vb_mixture.models import NormalGammaComponent
from vb_mixture.utils import (
    ResourceMonitor, TrainingLogger, check_monotonicity, check_responsibilities,
    cluster_agreement, summarize_runs
)
from vb_mixture.utils.metrics import per_cluster_recall


# =============================================================================
# Timing Tests
# =============================================================================

class TestResourceMonitor:
    """Tests for ResourceMonitor class."""

    def test_basic_functionality(self):
        """Test basic monitoring."""
        monitor = ResourceMonitor()
        monitor.start()

        data = [list(range(10000)) for _ in range(10)]
        time.sleep(0.05)
        monitor.sample()

        stats = monitor.stop()

        assert 'elapsed_time' in stats
        assert 'peak_memory_mb' in stats
        assert stats['elapsed_time'] >= 0.05
        assert stats['peak_memory_mb'] > 0

        del data

    def test_context_manager(self):
        """Test as context manager."""
        with ResourceMonitor() as monitor:
            time.sleep(0.01)

        assert not monitor.monitoring

    def test_error_on_double_start(self):
        """Test error when starting twice."""
        monitor = ResourceMonitor()
        monitor.start()

        with pytest.raises(RuntimeError):
            monitor.start()

        monitor.stop()

    def test_error_on_stop_without_start(self):
        """Test error when stopping without starting."""
        with pytest.raises(RuntimeError):
            ResourceMonitor().stop()


# =============================================================================
# Metrics Tests
# =============================================================================

class TestCheckMonotonicity:
    """Tests for check_monotonicity function."""

    def test_monotonic_sequence(self):
        is_mono, violations = check_monotonicity([-100.0, -95.0, -90.0, -85.0])

        assert is_mono is True
        assert len(violations) == 0

    def test_non_monotonic_sequence(self):
        is_mono, violations = check_monotonicity([-100.0, -95.0, -96.0, -85.0])

        assert is_mono is False
        assert violations == [2]

    def test_within_tolerance(self):
        is_mono, _ = check_monotonicity([-100.0, -100.0 + 1e-9, -100.0], tol=1e-8)
        assert is_mono is True


class TestCheckResponsibilities:
    """Tests for check_responsibilities function."""

    def test_valid_rows(self):
        ok, bad = check_responsibilities(np.array([[0.3, 0.7], [1.0, 0.0]]))
        assert ok and bad == []

    def test_invalid_rows(self):
        ok, bad = check_responsibilities(np.array([[0.3, 0.6], [1.0, 0.0], [1.2, -0.2]]))
        assert not ok
        assert bad == [0, 2]


class TestClusterAgreement:
    """Tests for cluster_agreement and per_cluster_recall."""

    def test_permutation_invariant(self):
        agreement, mapping = cluster_agreement(np.array([0, 0, 1, 1]), np.array([1, 1, 0, 0]))

        assert agreement == 1.0
        assert mapping == {0: 1, 1: 0}

    def test_partial_agreement(self):
        true_labels = np.array([0, 0, 0, 0, 1, 1, 1, 1])
        predicted = np.array([0, 0, 0, 1, 1, 1, 1, 1])

        agreement, _ = cluster_agreement(true_labels, predicted)
        assert agreement == 7 / 8
        assert np.allclose(per_cluster_recall(true_labels, predicted), [0.75, 1.0])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            cluster_agreement(np.zeros(3), np.zeros(4))


class TestSummarizeRuns:
    """Tests for summarize_runs function."""

    def test_empty(self):
        assert summarize_runs([]) == {'n_runs': 0}

    def test_aggregates(self):
        results = [
            {'n_iterations': 10, 'converged': True, 'err': False,
             'elapsed_seconds': 1.0, 'negative_free_energy': -100.0},
            {'n_iterations': 20, 'converged': False, 'err': True,
             'elapsed_seconds': 3.0, 'negative_free_energy': '-inf'},
        ]
        summary = summarize_runs(results)

        assert summary['n_runs'] == 2
        assert summary['converged_rate'] == 0.5
        assert summary['error_rate'] == 0.5
        assert summary['mean_iterations'] == 15.0
        assert summary['mean_time'] == 2.0
        assert summary['mean_final_nfe'] == -100.0


# =============================================================================
# Training State Tests
# =============================================================================

class TestTrainingState:
    """Tests for TrainingState bookkeeping."""

    def test_record_iteration(self):
        training = TrainingState()
        training.record_iteration(1, -10.0, -5.0, 5.0)
        training.record_iteration(2, -8.0, -4.0, 4.0)

        assert training.n_iterations == 2
        assert training.negative_free_energy == -8.0
        assert training.previous_negative_free_energy == -10.0
        assert training.iterations.negative_free_energy == [-10.0, -8.0]

    def test_snapshot_is_independent(self):
        training = TrainingState()
        training.component_memberships = np.array([[0.5, 0.5]])

        snap = training.snapshot()
        training.component_memberships[0, 0] = 1.0

        assert snap.component_memberships[0, 0] == 0.5
        assert not snap.component_memberships.flags.writeable

    def test_finish(self):
        training = TrainingState()
        training.finish('converged', {'elapsed_time': 1.5, 'peak_memory_mb': 20.0})

        assert training.stopping_reason == 'converged'
        assert training.end_time is not None
        assert training.elapsed_seconds == 1.5


# =============================================================================
# Logging Tests
# =============================================================================

class TestTrainingLogger:
    """Tests for TrainingLogger class."""

    @pytest.fixture
    def finished_run(self):
        X, _ = generate_cluster_data([[0, 0], [6, 6]], n=100, seed=0)
        model = VBMixture.from_template(NormalGammaComponent(), 2, max_iterations=5, random_state=0)
        _, training = model.vb_batch(X)
        return training

    def test_log_and_load(self, tmp_path, finished_run):
        logger = TrainingLogger(base_dir=str(tmp_path))

        run_id = logger.log_run(finished_run, experiment='clusters', regime='batch', seed=0)
        assert len(run_id) == 8

        results = logger.load_results('clusters', 'batch')
        assert len(results) == 1
        assert results[0]['seed'] == 0
        assert results[0]['n_iterations'] == finished_run.n_iterations
        assert results[0]['nfe_history'] == finished_run.iterations.negative_free_energy

    def test_memberships_and_non_finite_values(self, tmp_path):
        logger = TrainingLogger(base_dir=str(tmp_path))
        training = TrainingState()
        training.component_memberships = np.array([[0.25, 0.75]])

        logger.log_run(training, experiment='raw', include_memberships=True)

        record = logger.load_results('raw')[0]
        assert record['component_memberships'] == [[0.25, 0.75]]
        assert record['negative_free_energy'] == '-inf'

    def test_regimes_and_summary(self, tmp_path, finished_run):
        logger = TrainingLogger(base_dir=str(tmp_path))

        for regime in ['batch', 'online', 'nonstationary']:
            logger.log_run(finished_run, experiment='clusters', regime=regime)
        logger.log_run(finished_run, experiment='clusters', regime='batch')

        assert logger.list_experiments() == ['clusters']
        assert logger.list_regimes('clusters') == ['batch', 'nonstationary', 'online']

        stats = logger.summary_stats('clusters')
        assert stats['batch']['n_runs'] == 2
        assert stats['online']['n_runs'] == 1

    def test_to_dataframe(self, tmp_path, finished_run):
        pd = pytest.importorskip('pandas')
        logger = TrainingLogger(base_dir=str(tmp_path))

        logger.log_run(finished_run, experiment='clusters', regime='batch', seed=1)
        logger.log_run(finished_run, experiment='clusters', regime='online', seed=2)

        df = logger.to_dataframe('clusters')
        assert isinstance(df, pd.DataFrame)
        assert len(df) == 2
        assert sorted(df['seed'].tolist()) == [1, 2]
        assert (df['nfe_history_len'] == finished_run.n_iterations).all()

    def test_dict_records_and_numpy_types(self, tmp_path):
        logger = TrainingLogger(base_dir=str(tmp_path))

        logger.log_run(
            {'n_iterations': np.int64(3), 'negative_free_energy': np.float64(-1.5)},
            experiment='raw', regime='manual', array=np.array([1.0, 2.0])
        )

        record = logger.load_results('raw', 'manual')[0]
        assert record['n_iterations'] == 3
        assert record['array'] == [1.0, 2.0]

    def test_missing_experiment(self, tmp_path):
        logger = TrainingLogger(base_dir=str(tmp_path))

        assert logger.load_results('nothing') == []
        with pytest.raises(ValueError):
            logger.log_run(TrainingState(), experiment='')


# =============================================================================
# Data Generation Tests
# =============================================================================

class TestDataGeneration:
    """Tests for the synthetic data generators."""

    def test_gmm_data(self):
        X, z, theta = generate_gmm_data(n=300, K=3, d=4, separation=3.0, seed=1)

        assert X.shape == (300, 4)
        assert z.shape == (300,)
        assert np.isclose(theta['pi'].sum(), 1.0)

    def test_seeds_do_not_touch_global_state(self):
        np.random.seed(123)
        expected = np.random.rand()

        np.random.seed(123)
        generate_cluster_data([[0, 0]], n=10, seed=5)
        assert np.random.rand() == expected

    def test_two_class_labels(self):
        X, labels = generate_two_class_data(n_negative=30, n_positive=10, d=3, seed=0)

        assert X.shape == (40, 3)
        assert labels.sum(axis=0).tolist() == [30, 10]
        assert np.all(labels.sum(axis=1) == 1)

    def test_drifting_stream(self):
        batches, means = generate_drifting_stream(n_batches=4, batch_size=10, d=2, drift=1.0, seed=0)

        assert len(batches) == 4
        assert batches[0].shape == (10, 2)
        assert np.allclose(means[:, 1], [0, 1, 2, 3])


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
