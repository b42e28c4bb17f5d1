"""
Tests for the persisted schema: tables, columns, constraints, indexes, view.
"""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from db import Base, Database, ALGORITHM_PERFORMANCE_VIEW
from db.models import ALGORITHM_PERFORMANCE_COLUMNS


class TestTables:
    def test_table_names(self, db):
        tables = set(inspect(db.engine).get_table_names())
        assert {"networks", "algorithms", "system_configs", "experiments", "visualizations"} <= tables

    def test_primary_keys_keep_original_names(self):
        primary_keys = {
            name: [column.name for column in table.primary_key.columns]
            for name, table in Base.metadata.tables.items()
        }
        assert primary_keys == {
            "networks": ["network_id"],
            "algorithms": ["algorithm_id"],
            "system_configs": ["config_id"],
            "experiments": ["experiment_id"],
            "visualizations": ["viz_id"],
        }

    def test_experiment_columns(self):
        columns = list(Base.metadata.tables["experiments"].c.keys())
        assert columns == [
            "experiment_id", "network_id", "algorithm_id", "system_config_id", "run_datetime",
            "runtime_seconds", "memory_peak_mb", "cpu_percent_avg",
            "converged", "iterations", "tolerance_achieved", "numerical_error",
            "eigenvalues", "eigenvectors_path", "spectral_gap", "spectral_radius", "algebraic_connectivity",
            "success", "error_message",
            "condition_number", "rank_estimate",
        ]

    def test_required_columns(self):
        def required(table):
            return {c.name for c in Base.metadata.tables[table].c if not c.nullable and not c.primary_key}

        assert required("networks") == {"name", "source", "is_directed", "is_weighted", "node_count", "edge_count"}
        assert required("algorithms") == {"name", "category", "implementation"}
        assert required("system_configs") == set()
        assert required("experiments") == {"network_id", "algorithm_id", "system_config_id", "success"}
        assert required("visualizations") == {"network_id", "layout_algorithm"}

    def test_foreign_keys(self, db):
        inspector = inspect(db.engine)
        experiment_fks = {
            fk["constrained_columns"][0]: (fk["referred_table"], fk["referred_columns"][0])
            for fk in inspector.get_foreign_keys("experiments")
        }
        assert experiment_fks == {
            "network_id": ("networks", "network_id"),
            "algorithm_id": ("algorithms", "algorithm_id"),
            "system_config_id": ("system_configs", "config_id"),
        }
        viz_fks = inspector.get_foreign_keys("visualizations")
        assert [(fk["referred_table"], fk["constrained_columns"]) for fk in viz_fks] == [("networks", ["network_id"])]


class TestIndexes:
    def test_index_surface(self, db):
        inspector = inspect(db.engine)
        indexes = {
            index["name"]: (table, tuple(index["column_names"]))
            for table in ("experiments", "networks", "algorithms")
            for index in inspector.get_indexes(table)
        }
        assert indexes == {
            "idx_experiments_network": ("experiments", ("network_id",)),
            "idx_experiments_algorithm": ("experiments", ("algorithm_id",)),
            "idx_experiments_datetime": ("experiments", ("run_datetime",)),
            "idx_networks_size": ("networks", ("node_count", "edge_count")),
            "idx_algorithms_category": ("algorithms", ("category",)),
        }


class TestView:
    def test_view_exists_with_columns(self, db):
        inspector = inspect(db.engine)
        assert ALGORITHM_PERFORMANCE_VIEW in inspector.get_view_names()
        columns = [column["name"] for column in inspector.get_columns(ALGORITHM_PERFORMANCE_VIEW)]
        assert columns == list(ALGORITHM_PERFORMANCE_COLUMNS)

    def test_reopening_database_keeps_view(self, db, db_path):
        reopened = Database(db_path)
        try:
            assert ALGORITHM_PERFORMANCE_VIEW in inspect(reopened.engine).get_view_names()
        finally:
            reopened.dispose()

    def test_stdev_aggregate_registered(self, db):
        with db.engine.connect() as conn:
            value = conn.execute(text(
                "SELECT STDEV(x) FROM (SELECT 1.0 AS x UNION ALL SELECT 2.0 UNION ALL SELECT 3.0)"
            )).scalar()
            single = conn.execute(text("SELECT STDEV(x) FROM (SELECT 5.0 AS x)")).scalar()
        assert value == pytest.approx(1.0)
        assert single is None


class TestStoredConstraints:
    def test_foreign_keys_enforced_by_sqlite(self, db):
        with pytest.raises(IntegrityError):
            with db.engine.begin() as conn:
                conn.execute(text(
                    "INSERT INTO experiments (network_id, algorithm_id, system_config_id, success) "
                    "VALUES (999, 999, 999, 1)"
                ))

    def test_negative_counts_rejected(self, db):
        with pytest.raises(IntegrityError):
            with db.engine.begin() as conn:
                conn.execute(text(
                    "INSERT INTO networks (name, source, is_directed, is_weighted, node_count, edge_count) "
                    "VALUES ('bad', 'generated', 0, 0, -1, 0)"
                ))

    def test_server_defaults_apply_to_raw_inserts(self, db, seeded):
        with db.engine.begin() as conn:
            conn.execute(text(
                "INSERT INTO visualizations (network_id, layout_algorithm) VALUES (:network_id, 'spring')"
            ), {"network_id": seeded["network_id"]})
            row = conn.execute(text("SELECT image_format, created_at FROM visualizations")).one()
        assert row.image_format == "PNG"
        assert row.created_at is not None

    def test_visualization_single_image_storage(self, db, seeded):
        with pytest.raises(IntegrityError):
            with db.engine.begin() as conn:
                conn.execute(text(
                    "INSERT INTO visualizations (network_id, layout_algorithm, image_blob, image_path) "
                    "VALUES (:network_id, 'spring', X'89504E47', 'images/big.png')"
                ), {"network_id": seeded["network_id"]})
