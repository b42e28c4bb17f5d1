"""
Concurrent writers: several harness workers inserting runs without coordination.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from db import Database, Experiment, Network, Algorithm, SystemConfig, ForeignKeyViolation


WORKERS = 4
RUNS_PER_WORKER = 10


@pytest.mark.slow
def test_concurrent_inserts_keep_referential_integrity(db_path, seeded, make_experiment):
    db = Database(db_path)

    def worker(index):
        inserted = []
        for run in range(RUNS_PER_WORKER):
            inserted.append(db.insert_experiment(make_experiment(
                runtime_seconds=float(index * RUNS_PER_WORKER + run),
                iterations=run,
            )))
        # A bad reference fails on its own without disturbing other writers
        with pytest.raises(ForeignKeyViolation):
            db.insert_experiment(make_experiment(network_id=10_000 + index))
        return inserted

    try:
        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            results = list(pool.map(worker, range(WORKERS)))

        all_ids = [experiment_id for ids in results for experiment_id in ids]
        assert len(set(all_ids)) == WORKERS * RUNS_PER_WORKER

        with db.session_scope() as session:
            assert session.query(Experiment).count() == WORKERS * RUNS_PER_WORKER
            resolved = (
                session.query(Experiment)
                .join(Network, Experiment.network_id == Network.network_id)
                .join(Algorithm, Experiment.algorithm_id == Algorithm.algorithm_id)
                .join(SystemConfig, Experiment.system_config_id == SystemConfig.config_id)
                .count()
            )
            assert resolved == WORKERS * RUNS_PER_WORKER

            rows = db.algorithm_performance(session)
            assert len(rows) == 1
            assert rows[0].run_count == WORKERS * RUNS_PER_WORKER
    finally:
        db.dispose()
