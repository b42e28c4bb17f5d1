"""
Pydantic record schemas for inserts into the research database.

Each record mirrors one table contract. Validation is strict: values are not
coerced between types, so ``"10"`` is not a node count and ``1`` is not a
boolean. Use ``from_data()`` to validate a plain mapping and get storage-layer
errors instead of pydantic's ``ValidationError``.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from domain.experiment_audit import audit_experiment

from .errors import ConstraintViolation, MissingRequiredField, TypeMismatch
from .models import to_naive_utc


# pydantic error types that mean "wrong kind of value" rather than "bad value"
_TYPE_ERROR_SUFFIXES = ('_type', '_parsing')
_TYPE_ERROR_TYPES = {'is_instance_of', 'finite_number', 'int_from_float'}


def _translate_validation_error(exc: ValidationError, table: str) -> ConstraintViolation:
    """Map the first pydantic error onto the storage error taxonomy."""
    error = exc.errors()[0]
    field = '.'.join(str(part) for part in error['loc']) or None
    error_type = error['type']
    message = f"{table}.{field}: {error['msg']}" if field else f"{table}: {error['msg']}"

    # An empty required text field counts as missing
    if error_type == 'missing' or (error_type == 'string_too_short' and error['input'] == ''):
        return MissingRequiredField(f"{table}.{field} is required", table=table, field=field)
    if error_type.endswith(_TYPE_ERROR_SUFFIXES) or error_type in _TYPE_ERROR_TYPES:
        return TypeMismatch(message, table=table, field=field)
    return ConstraintViolation(message, table=table, field=field)


class Record(BaseModel):
    """Base class for insert records."""

    model_config = ConfigDict(strict=True, extra='forbid', frozen=True)

    table_name: ClassVar[str] = ''

    @field_validator('created_at', 'run_datetime', check_fields=False)
    @classmethod
    def _store_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Timestamp columns hold naive UTC
        return None if value is None else to_naive_utc(value)

    @classmethod
    def from_data(cls, data: Union['Record', Mapping[str, Any]]):
        """
        Build a record from a mapping, or return an existing record unchanged.

        Raises:
            MissingRequiredField: A required field is absent
            TypeMismatch: A value has the wrong type
            ConstraintViolation: A value is out of range or violates a policy
        """
        if isinstance(data, cls):
            return data
        if isinstance(data, Record):
            raise TypeMismatch(
                f"Expected {cls.__name__}, got {type(data).__name__}",
                table=cls.table_name
            )
        if not isinstance(data, Mapping):
            raise TypeMismatch(
                f"Expected a mapping or {cls.__name__}, got {type(data).__name__}",
                table=cls.table_name
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise _translate_validation_error(e, cls.table_name) from e

    def to_row(self) -> Dict[str, Any]:
        """Column values to store; unset timestamps are left to column defaults."""
        return self.model_dump(exclude_none=True)


class NetworkRecord(Record):
    """Graph instance to catalog."""

    table_name = 'networks'

    name: str = Field(min_length=1)
    source: str = Field(min_length=1)
    source_url: Optional[str] = None
    network_type: Optional[str] = None
    is_directed: bool
    is_weighted: bool
    node_count: int = Field(ge=0)
    edge_count: int = Field(ge=0)
    description: Optional[str] = None
    generation_params: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    file_path: Optional[str] = None


class AlgorithmRecord(Record):
    """Algorithm implementation to catalog."""

    table_name = 'algorithms'

    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    implementation: str = Field(min_length=1)
    version: Optional[str] = None
    method_details: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class SystemConfigRecord(Record):
    """Environment snapshot. Every field is optional."""

    table_name = 'system_configs'

    python_version: Optional[str] = None
    numpy_version: Optional[str] = None
    scipy_version: Optional[str] = None
    networkx_version: Optional[str] = None
    cpu_info: Optional[str] = None
    memory_gb: Optional[float] = Field(default=None, ge=0)
    gpu_info: Optional[str] = None
    colab_runtime_type: Optional[str] = None
    created_at: Optional[datetime] = None


class ExperimentRecord(Record):
    """One benchmark run, stored exactly as observed."""

    table_name = 'experiments'

    network_id: int
    algorithm_id: int
    system_config_id: int
    run_datetime: Optional[datetime] = None

    # Performance metrics
    runtime_seconds: Optional[float] = Field(default=None, ge=0)
    memory_peak_mb: Optional[float] = Field(default=None, ge=0)
    cpu_percent_avg: Optional[float] = Field(default=None, ge=0)

    # Algorithm-specific results
    converged: Optional[bool] = None
    iterations: Optional[int] = Field(default=None, ge=0)
    tolerance_achieved: Optional[float] = None
    numerical_error: Optional[float] = None

    # Results storage
    eigenvalues: Optional[List[float]] = None
    eigenvectors_path: Optional[str] = None
    spectral_gap: Optional[float] = None
    spectral_radius: Optional[float] = None
    algebraic_connectivity: Optional[float] = None

    # Error handling
    success: bool
    error_message: Optional[str] = None

    # Additional metrics
    condition_number: Optional[float] = None
    rank_estimate: Optional[int] = Field(default=None, ge=0)

    @field_validator('eigenvalues', mode='before')
    @classmethod
    def _array_to_list(cls, value):
        # numpy arrays and similar array-likes
        if value is not None and hasattr(value, 'tolist'):
            value = value.tolist()
        if isinstance(value, tuple):
            value = list(value)
        return value

    @model_validator(mode='after')
    def _single_result_storage(self):
        if self.eigenvalues is not None and self.eigenvectors_path is not None:
            raise ValueError("store results either inline (eigenvalues) or externally (eigenvectors_path), not both")
        return self

    def audit(self, category: Optional[str] = None) -> List[str]:
        """Harness-level warnings for this run; see domain.experiment_audit."""
        return audit_experiment(self, category)


class VisualizationRecord(Record):
    """Rendered layout of a network."""

    table_name = 'visualizations'

    network_id: int
    layout_algorithm: str = Field(min_length=1)
    image_format: str = Field(default='PNG', min_length=1)
    image_blob: Optional[bytes] = None
    image_path: Optional[str] = None
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    layout_params: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    @field_validator('image_format')
    @classmethod
    def _upper_format(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode='after')
    def _single_image_storage(self):
        if self.image_blob is not None and self.image_path is not None:
            raise ValueError("store the image either inline (image_blob) or externally (image_path), not both")
        return self


class AlgorithmPerformance(BaseModel):
    """One row of the algorithm_performance view."""

    model_config = ConfigDict(frozen=True)

    network_name: str
    node_count: int
    edge_count: int
    algorithm_name: str
    category: str
    avg_runtime: Optional[float] = None
    runtime_std: Optional[float] = None
    avg_memory: Optional[float] = None
    run_count: int
    success_rate: float
