"""
Harness-level validation of experiment records.

These checks are conventions of the benchmarking harness, not storage
constraints: a run that fails them is still stored exactly as observed.
"""

from typing import Dict, List, Optional, Tuple


# Result fields a successful run is expected to populate, per algorithm category.
# A category is satisfied when any one of its fields is set.
CATEGORY_RESULT_FIELDS: Dict[str, Tuple[str, ...]] = {
    'spectral_gap': ('spectral_gap',),
    'full_spectrum': ('eigenvalues', 'eigenvectors_path'),
    'laplacian': ('algebraic_connectivity',),
    'spectral_radius': ('spectral_radius',),
}


def audit_experiment(record, category: Optional[str] = None) -> List[str]:
    """
    Check an experiment record against harness conventions.

    Args:
        record: ExperimentRecord (or any object with the same attributes)
        category: Category of the algorithm that produced the run

    Returns:
        Human-readable warnings, empty when the record is consistent
    """
    warnings = []

    if not record.success:
        if not record.error_message:
            warnings.append("failed run has no error_message")
        return warnings

    if record.error_message:
        warnings.append("successful run carries an error_message")

    expected = CATEGORY_RESULT_FIELDS.get(category)
    if expected and all(getattr(record, field) is None for field in expected):
        warnings.append(
            f"successful '{category}' run has none of the expected result fields: {', '.join(expected)}"
        )

    return warnings
