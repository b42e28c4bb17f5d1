"""
Database package for the network research store.
"""

from .models import Base, Network, Algorithm, SystemConfig, Experiment, Visualization, ALGORITHM_PERFORMANCE_VIEW
from .schemas import NetworkRecord, AlgorithmRecord, SystemConfigRecord, ExperimentRecord, VisualizationRecord, AlgorithmPerformance
from .errors import ResearchDBError, ConstraintViolation, MissingRequiredField, TypeMismatch, ForeignKeyViolation, AppendOnlyViolation
from .database import Database

__all__ = ['Base', 'Network', 'Algorithm', 'SystemConfig', 'Experiment', 'Visualization', 'ALGORITHM_PERFORMANCE_VIEW', 'NetworkRecord', 'AlgorithmRecord', 'SystemConfigRecord', 'ExperimentRecord', 'VisualizationRecord', 'AlgorithmPerformance', 'ResearchDBError', 'ConstraintViolation', 'MissingRequiredField', 'TypeMismatch', 'ForeignKeyViolation', 'AppendOnlyViolation', 'Database']
