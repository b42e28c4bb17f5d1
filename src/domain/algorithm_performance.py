"""
In-memory computation of the algorithm_performance aggregation.

Produces the same rows as the algorithm_performance view for experiments,
networks and algorithms that are already loaded (ORM objects or records),
without a database round trip.
"""

import statistics
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from db.schemas import AlgorithmPerformance


def _index(items: Union[Mapping[int, Any], Iterable[Any]], id_attr: str) -> Dict[int, Any]:
    """Index catalog entries by identity; mappings are assumed to be indexed already."""
    if isinstance(items, Mapping):
        return dict(items)
    return {getattr(item, id_attr): item for item in items}


def _mean(values: List[float]) -> Optional[float]:
    return statistics.fmean(values) if values else None


def compute_algorithm_performance(
    experiments: Iterable[Any],
    networks: Union[Mapping[int, Any], Iterable[Any]],
    algorithms: Union[Mapping[int, Any], Iterable[Any]]
) -> List[AlgorithmPerformance]:
    """
    Aggregate successful experiments per (network, algorithm) pair.

    Args:
        experiments: Objects with network_id, algorithm_id, success, converged,
                     runtime_seconds and memory_peak_mb attributes
        networks: Network objects, or a mapping network_id -> network
        algorithms: Algorithm objects, or a mapping algorithm_id -> algorithm

    Returns:
        Rows ordered by network name, then algorithm name. Experiments whose
        network or algorithm is unknown are ignored, as in an inner join.
    """
    networks_by_id = _index(networks, 'network_id')
    algorithms_by_id = _index(algorithms, 'algorithm_id')

    groups: Dict[Tuple[int, int], List[Any]] = {}
    for experiment in experiments:
        if not experiment.success:
            continue
        if experiment.network_id not in networks_by_id or experiment.algorithm_id not in algorithms_by_id:
            continue
        groups.setdefault((experiment.network_id, experiment.algorithm_id), []).append(experiment)

    rows = []
    for (network_id, algorithm_id), runs in groups.items():
        network = networks_by_id[network_id]
        algorithm = algorithms_by_id[algorithm_id]

        # NULL measurements are skipped, as SQL AVG does
        runtimes = [run.runtime_seconds for run in runs if run.runtime_seconds is not None]
        memory = [run.memory_peak_mb for run in runs if run.memory_peak_mb is not None]

        rows.append(AlgorithmPerformance(
            network_name=network.name,
            node_count=network.node_count,
            edge_count=network.edge_count,
            algorithm_name=algorithm.name,
            category=algorithm.category,
            avg_runtime=_mean(runtimes),
            runtime_std=statistics.stdev(runtimes) if len(runtimes) >= 2 else None,
            avg_memory=_mean(memory),
            run_count=len(runs),
            success_rate=sum(1.0 for run in runs if run.converged) / len(runs)
        ))

    rows.sort(key=lambda row: (row.network_name, row.algorithm_name))
    return rows
