"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for the network research database.

Usage:
    pytest tests/                    # Run all tests
    pytest tests/ -v                 # Verbose output
    pytest tests/ -k "performance"   # Run only performance tests
    pytest tests/ --quick            # Skip slow tests
"""

from datetime import datetime
from typing import Dict

import pytest

from db import Database


# =============================================================================
# Custom Markers
# =============================================================================

def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--quick",
        action="store_true",
        default=False,
        help="Skip slow tests",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests if --quick is specified"""
    if config.getoption("--quick"):
        skip_slow = pytest.mark.skip(reason="Skipped with --quick")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


# =============================================================================
# Record Fixtures
# =============================================================================

@pytest.fixture
def network_data() -> Dict:
    """Synthetic Erdos-Renyi network"""
    return {
        "name": "er-100",
        "source": "generated",
        "network_type": "synthetic",
        "is_directed": False,
        "is_weighted": False,
        "node_count": 100,
        "edge_count": 495,
        "generation_params": {"model": "erdos_renyi", "p": 0.1},
    }


@pytest.fixture
def algorithm_data() -> Dict:
    """ARPACK spectral gap solver"""
    return {
        "name": "SciPy_ARPACK",
        "category": "spectral_gap",
        "implementation": "scipy",
        "version": "1.11.4",
        "method_details": "eigsh, which='LM'",
        "parameters": {"k": 2, "tol": 1e-8},
    }


@pytest.fixture
def system_config_data() -> Dict:
    """Standard runtime snapshot"""
    return {
        "python_version": "3.11.6",
        "numpy_version": "1.26.2",
        "scipy_version": "1.11.4",
        "networkx_version": "3.2.1",
        "cpu_info": "Intel(R) Xeon(R) CPU @ 2.20GHz (2 cores)",
        "memory_gb": 12.7,
        "colab_runtime_type": "standard",
    }


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "research.db")


@pytest.fixture
def db(db_path):
    """Fresh file-backed research database"""
    database = Database(db_path)
    yield database
    database.dispose()


@pytest.fixture
def seeded(db, network_data, algorithm_data, system_config_data) -> Dict[str, int]:
    """Database with one network, algorithm and system config; returns their IDs"""
    return {
        "network_id": db.insert_network(network_data),
        "algorithm_id": db.insert_algorithm(algorithm_data),
        "system_config_id": db.insert_system_config(system_config_data),
    }


@pytest.fixture
def make_experiment(seeded):
    """Factory for experiment mappings referencing the seeded catalogs"""
    def _make(**overrides) -> Dict:
        data = {
            **seeded,
            "success": True,
            "converged": True,
            "runtime_seconds": 1.0,
            "memory_peak_mb": 50.0,
            "spectral_gap": 0.42,
        }
        data.update(overrides)
        return data
    return _make


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 3, 1, 12, 0, 0)
