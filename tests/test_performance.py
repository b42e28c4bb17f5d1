"""
Tests for the algorithm_performance view and its in-memory counterpart.
"""

import pytest

from db import Network, Algorithm, Experiment, NetworkRecord, AlgorithmRecord, ExperimentRecord
from domain.algorithm_performance import compute_algorithm_performance


def _view(db, **filters):
    with db.session_scope() as session:
        return db.algorithm_performance(session, **filters)


class TestAlgorithmPerformanceView:
    def test_three_converged_runs(self, db, make_experiment):
        for runtime in (1.0, 2.0, 3.0):
            db.insert_experiment(make_experiment(runtime_seconds=runtime, converged=True))

        rows = _view(db)
        assert len(rows) == 1
        row = rows[0]
        assert row.network_name == "er-100"
        assert row.node_count == 100
        assert row.edge_count == 495
        assert row.algorithm_name == "SciPy_ARPACK"
        assert row.category == "spectral_gap"
        assert row.run_count == 3
        assert row.avg_runtime == pytest.approx(2.0)
        assert row.runtime_std == pytest.approx(1.0)
        assert row.avg_memory == pytest.approx(50.0)
        assert row.success_rate == pytest.approx(1.0)

    def test_failed_run_is_filtered_out(self, db, make_experiment):
        for runtime in (1.0, 2.0, 3.0):
            db.insert_experiment(make_experiment(runtime_seconds=runtime))
        db.insert_experiment(make_experiment(
            success=False, converged=False, runtime_seconds=60.0, error_message="MemoryError"
        ))

        row = _view(db)[0]
        assert row.run_count == 3
        assert row.avg_runtime == pytest.approx(2.0)
        assert row.success_rate == pytest.approx(1.0)

    def test_pairs_with_only_failures_are_absent(self, db, make_experiment):
        db.insert_experiment(make_experiment(success=False, error_message="diverged"))
        assert _view(db) == []

    def test_success_rate_counts_unknown_convergence_as_zero(self, db, make_experiment):
        db.insert_experiment(make_experiment(converged=True))
        db.insert_experiment(make_experiment(converged=False))
        db.insert_experiment(make_experiment(converged=None))
        db.insert_experiment(make_experiment(converged=True))

        assert _view(db)[0].success_rate == pytest.approx(0.5)

    def test_single_run_has_no_standard_deviation(self, db, make_experiment):
        db.insert_experiment(make_experiment(runtime_seconds=4.0))
        row = _view(db)[0]
        assert row.avg_runtime == pytest.approx(4.0)
        assert row.runtime_std is None

    def test_missing_measurements_are_ignored_in_averages(self, db, make_experiment):
        db.insert_experiment(make_experiment(runtime_seconds=2.0, memory_peak_mb=None))
        db.insert_experiment(make_experiment(runtime_seconds=None, memory_peak_mb=30.0))

        row = _view(db)[0]
        assert row.run_count == 2
        assert row.avg_runtime == pytest.approx(2.0)
        assert row.avg_memory == pytest.approx(30.0)

    def test_grouped_per_network_and_algorithm(self, db, seeded, make_experiment, network_data, algorithm_data):
        other_network = db.insert_network({**network_data, "name": "karate", "source": "konect",
                                           "node_count": 34, "edge_count": 78, "generation_params": None})
        lanczos = db.insert_algorithm({**algorithm_data, "name": "NetworkX_laplacian", "category": "laplacian",
                                       "implementation": "networkx"})

        db.insert_experiment(make_experiment(runtime_seconds=1.0))
        db.insert_experiment(make_experiment(network_id=other_network, runtime_seconds=0.1))
        db.insert_experiment(make_experiment(algorithm_id=lanczos, runtime_seconds=5.0, algebraic_connectivity=0.8))
        db.insert_experiment(make_experiment(algorithm_id=lanczos, runtime_seconds=7.0, algebraic_connectivity=0.8))

        rows = _view(db)
        assert [(r.network_name, r.algorithm_name, r.run_count) for r in rows] == [
            ("er-100", "NetworkX_laplacian", 2),
            ("er-100", "SciPy_ARPACK", 1),
            ("karate", "SciPy_ARPACK", 1),
        ]
        assert rows[0].avg_runtime == pytest.approx(6.0)

        assert [r.algorithm_name for r in _view(db, category="laplacian")] == ["NetworkX_laplacian"]
        assert [r.network_name for r in _view(db, network_name="karate")] == ["karate"]

    def test_view_reflects_new_inserts(self, db, make_experiment):
        db.insert_experiment(make_experiment(runtime_seconds=1.0))
        assert _view(db)[0].run_count == 1
        db.insert_experiment(make_experiment(runtime_seconds=3.0))
        assert _view(db)[0].run_count == 2


class TestComputeAlgorithmPerformance:
    def test_matches_view(self, db, seeded, make_experiment, network_data, algorithm_data):
        other_network = db.insert_network({**network_data, "name": "ba-500", "node_count": 500,
                                           "edge_count": 1491})
        other_algorithm = db.insert_algorithm({**algorithm_data, "name": "NetworkX_eigenvalues",
                                               "implementation": "networkx"})
        for runtime, converged in ((1.0, True), (2.5, False), (4.0, None)):
            db.insert_experiment(make_experiment(runtime_seconds=runtime, converged=converged))
        db.insert_experiment(make_experiment(network_id=other_network, algorithm_id=other_algorithm,
                                             runtime_seconds=9.0, memory_peak_mb=75.0))
        db.insert_experiment(make_experiment(success=False, error_message="timeout"))

        with db.session_scope() as session:
            expected = db.algorithm_performance(session)
            computed = compute_algorithm_performance(
                session.query(Experiment).all(),
                session.query(Network).all(),
                session.query(Algorithm).all(),
            )

        assert len(computed) == len(expected) == 2
        for mine, theirs in zip(computed, expected):
            assert mine.network_name == theirs.network_name
            assert mine.algorithm_name == theirs.algorithm_name
            assert mine.run_count == theirs.run_count
            assert mine.avg_runtime == pytest.approx(theirs.avg_runtime)
            assert mine.avg_memory == pytest.approx(theirs.avg_memory)
            assert mine.success_rate == pytest.approx(theirs.success_rate)
            if theirs.runtime_std is None:
                assert mine.runtime_std is None
            else:
                assert mine.runtime_std == pytest.approx(theirs.runtime_std)

    def test_works_on_records_with_mappings(self, network_data, algorithm_data):
        networks = {1: NetworkRecord(**network_data)}
        algorithms = {7: AlgorithmRecord(**algorithm_data)}
        experiments = [
            ExperimentRecord(network_id=1, algorithm_id=7, system_config_id=1, success=True,
                             converged=True, runtime_seconds=runtime)
            for runtime in (1.0, 2.0, 3.0)
        ]
        experiments.append(ExperimentRecord(network_id=1, algorithm_id=7, system_config_id=1, success=False,
                                            error_message="oom"))
        # Unknown network: dropped, like an inner join
        experiments.append(ExperimentRecord(network_id=2, algorithm_id=7, system_config_id=1, success=True))

        rows = compute_algorithm_performance(experiments, networks, algorithms)
        assert len(rows) == 1
        assert rows[0].run_count == 3
        assert rows[0].avg_runtime == pytest.approx(2.0)
        assert rows[0].runtime_std == pytest.approx(1.0)
        assert rows[0].avg_memory is None
        assert rows[0].success_rate == pytest.approx(1.0)

    def test_empty_input(self):
        assert compute_algorithm_performance([], [], []) == []
