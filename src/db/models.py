"""
SQLAlchemy models for the network research database.

Designed for spectral property algorithm performance analysis. Table, column,
view and index names match the original SQL schema so existing databases and
queries keep working.
"""

from datetime import datetime, timezone
from sqlalchemy import (Column, Integer, String, Text, DateTime, Boolean, Float, JSON, LargeBinary,
                        ForeignKey, Index, CheckConstraint, event, func)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.schema import DDL

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""
    if value.tzinfo is not None and value.utcoffset() is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(tzinfo=None)


# JSON documents are stored as SQL NULL when absent, never as the JSON literal 'null'
JSONDocument = JSON(none_as_null=True)


class Network(Base):
    """Graph instance under study."""
    __tablename__ = 'networks'

    network_id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    source = Column(String(255), nullable=False)  # 'generated', 'snap', 'konect', etc.
    source_url = Column(String(2048))
    network_type = Column(String(100))  # 'social', 'biological', 'synthetic', etc.
    is_directed = Column(Boolean, nullable=False)
    is_weighted = Column(Boolean, nullable=False)
    node_count = Column(Integer, nullable=False)
    edge_count = Column(Integer, nullable=False)
    description = Column(Text)
    generation_params = Column(JSONDocument)  # For synthetic networks
    created_at = Column(DateTime, default=utcnow, server_default=func.current_timestamp())
    file_path = Column(String(1024))  # Edge list or adjacency matrix

    # Relationships
    experiments = relationship('Experiment', back_populates='network')
    visualizations = relationship('Visualization', back_populates='network')

    __table_args__ = (
        CheckConstraint('node_count >= 0', name='ck_networks_node_count'),
        CheckConstraint('edge_count >= 0', name='ck_networks_edge_count'),
        Index('idx_networks_size', 'node_count', 'edge_count'),
    )

    def __repr__(self):
        return f"<Network(id={self.network_id}, name='{self.name}', nodes={self.node_count}, edges={self.edge_count})>"


class Algorithm(Base):
    """Spectral computation method and the implementation that runs it."""
    __tablename__ = 'algorithms'

    algorithm_id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)  # 'NetworkX_eigenvalues', 'SciPy_ARPACK', etc.
    category = Column(String(100), nullable=False)  # 'spectral_gap', 'full_spectrum', 'laplacian', etc.
    implementation = Column(String(100), nullable=False)  # 'networkx', 'scipy', 'igraph', etc.
    version = Column(String(50))  # Library version
    method_details = Column(Text)  # Specific solver, parameters
    parameters = Column(JSONDocument)
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow, server_default=func.current_timestamp())

    # Relationships
    experiments = relationship('Experiment', back_populates='algorithm')

    __table_args__ = (
        Index('idx_algorithms_category', 'category'),
    )

    def __repr__(self):
        return f"<Algorithm(id={self.algorithm_id}, name='{self.name}', category='{self.category}', implementation='{self.implementation}')>"


class SystemConfig(Base):
    """Hardware/software environment snapshot, for reproducibility."""
    __tablename__ = 'system_configs'

    config_id = Column(Integer, primary_key=True)
    python_version = Column(String(50))
    numpy_version = Column(String(50))
    scipy_version = Column(String(50))
    networkx_version = Column(String(50))
    cpu_info = Column(String(255))
    memory_gb = Column(Float)
    gpu_info = Column(String(255))
    colab_runtime_type = Column(String(50))  # 'standard', 'high-ram', 'gpu', etc.
    created_at = Column(DateTime, default=utcnow, server_default=func.current_timestamp())

    # Relationships
    experiments = relationship('Experiment', back_populates='system_config')

    def __repr__(self):
        return f"<SystemConfig(id={self.config_id}, python={self.python_version}, runtime={self.colab_runtime_type})>"


class Experiment(Base):
    """One benchmark run of an algorithm on a network."""
    __tablename__ = 'experiments'

    experiment_id = Column(Integer, primary_key=True)
    network_id = Column(Integer, ForeignKey('networks.network_id'), nullable=False)
    algorithm_id = Column(Integer, ForeignKey('algorithms.algorithm_id'), nullable=False)
    system_config_id = Column(Integer, ForeignKey('system_configs.config_id'), nullable=False)
    run_datetime = Column(DateTime, default=utcnow, server_default=func.current_timestamp())

    # Performance metrics
    runtime_seconds = Column(Float)
    memory_peak_mb = Column(Float)
    cpu_percent_avg = Column(Float)

    # Algorithm-specific results
    converged = Column(Boolean)
    iterations = Column(Integer)  # For iterative methods
    tolerance_achieved = Column(Float)
    numerical_error = Column(Float)  # For accuracy comparison

    # Results storage
    eigenvalues = Column(JSONDocument)  # Array of computed eigenvalues
    eigenvectors_path = Column(String(1024))  # File path if too large for JSON
    spectral_gap = Column(Float)
    spectral_radius = Column(Float)
    algebraic_connectivity = Column(Float)

    # Error handling
    success = Column(Boolean, nullable=False)
    error_message = Column(Text)

    # Additional metrics
    condition_number = Column(Float)
    rank_estimate = Column(Integer)

    # Relationships
    network = relationship('Network', back_populates='experiments')
    algorithm = relationship('Algorithm', back_populates='experiments')
    system_config = relationship('SystemConfig', back_populates='experiments')

    __table_args__ = (
        CheckConstraint('eigenvalues IS NULL OR eigenvectors_path IS NULL', name='ck_experiments_result_storage'),
        Index('idx_experiments_network', 'network_id'),
        Index('idx_experiments_algorithm', 'algorithm_id'),
        Index('idx_experiments_datetime', 'run_datetime'),
    )

    def __repr__(self):
        status = 'success' if self.success else 'error'
        runtime = f"{self.runtime_seconds:.3f}s" if self.runtime_seconds is not None else 'N/A'
        return f"<Experiment(id={self.experiment_id}, network={self.network_id}, algorithm={self.algorithm_id}, status={status}, runtime={runtime})>"


class Visualization(Base):
    """Rendered layout of a network."""
    __tablename__ = 'visualizations'

    viz_id = Column(Integer, primary_key=True)
    network_id = Column(Integer, ForeignKey('networks.network_id'), nullable=False)
    layout_algorithm = Column(String(100), nullable=False)  # 'spring', 'spectral', 'circular', etc.
    image_format = Column(String(10), default='PNG', server_default='PNG')  # 'PNG', 'SVG', 'PDF'
    image_blob = Column(LargeBinary)  # For small images
    image_path = Column(String(1024))  # For large images
    width = Column(Integer)
    height = Column(Integer)
    layout_params = Column(JSONDocument)
    created_at = Column(DateTime, default=utcnow, server_default=func.current_timestamp())

    # Relationships
    network = relationship('Network', back_populates='visualizations')

    __table_args__ = (
        CheckConstraint('image_blob IS NULL OR image_path IS NULL', name='ck_visualizations_image_storage'),
    )

    def __repr__(self):
        storage = 'blob' if self.image_blob is not None else ('path' if self.image_path else 'none')
        return f"<Visualization(id={self.viz_id}, network={self.network_id}, layout='{self.layout_algorithm}', format={self.image_format}, storage={storage})>"


# Performance comparison view for analysis.
# STDEV is not a SQLite builtin; Database registers it on every connection.
ALGORITHM_PERFORMANCE_VIEW = 'algorithm_performance'

ALGORITHM_PERFORMANCE_COLUMNS = (
    'network_name', 'node_count', 'edge_count', 'algorithm_name', 'category',
    'avg_runtime', 'runtime_std', 'avg_memory', 'run_count', 'success_rate',
)

ALGORITHM_PERFORMANCE_SQL = f"""
CREATE VIEW IF NOT EXISTS {ALGORITHM_PERFORMANCE_VIEW} AS
SELECT
    n.name AS network_name,
    n.node_count,
    n.edge_count,
    a.name AS algorithm_name,
    a.category,
    AVG(e.runtime_seconds) AS avg_runtime,
    STDEV(e.runtime_seconds) AS runtime_std,
    AVG(e.memory_peak_mb) AS avg_memory,
    COUNT(*) AS run_count,
    AVG(CASE WHEN e.converged THEN 1.0 ELSE 0.0 END) AS success_rate
FROM experiments e
JOIN networks n ON e.network_id = n.network_id
JOIN algorithms a ON e.algorithm_id = a.algorithm_id
WHERE e.success = 1
GROUP BY n.network_id, a.algorithm_id
"""

event.listen(Base.metadata, 'after_create', DDL(ALGORITHM_PERFORMANCE_SQL))
event.listen(Base.metadata, 'before_drop', DDL(f"DROP VIEW IF EXISTS {ALGORITHM_PERFORMANCE_VIEW}"))
