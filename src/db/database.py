"""
Database connection and operations.

The research database is append-only: catalog rows (networks, algorithms,
system configs), experiment runs and visualizations are inserted once and
never updated or deleted. Corrections are recorded by inserting a new row.
"""

import logging
import re
import statistics
import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Type, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

import settings
from .errors import (AppendOnlyViolation, ConstraintViolation, ForeignKeyViolation,
                     MissingRequiredField)
from .models import (Base, Network, Algorithm, SystemConfig, Experiment, Visualization,
                     ALGORITHM_PERFORMANCE_VIEW, ALGORITHM_PERFORMANCE_COLUMNS, to_naive_utc)
from .schemas import (Record, NetworkRecord, AlgorithmRecord, SystemConfigRecord, ExperimentRecord,
                      VisualizationRecord, AlgorithmPerformance)

logger = logging.getLogger(__name__)

RecordData = Union[Record, Mapping[str, Any]]

_NOT_NULL_RE = re.compile(r'NOT NULL constraint failed: (\w+)\.(\w+)')


class SampleStdev:
    """SQLite aggregate for the sample standard deviation (``STDEV``)."""

    def __init__(self):
        self.values = []

    def step(self, value):
        if value is not None:
            self.values.append(float(value))

    def finalize(self):
        if len(self.values) < 2:
            return None
        return statistics.stdev(self.values)


def _configure_sqlite_connection(dbapi_connection, connection_record):
    """Enforce foreign keys and register STDEV on every new connection."""
    dbapi_connection.create_aggregate('stdev', 1, SampleStdev)
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def _reject_mutations(session: Session, flush_context, instances):
    """Stored rows are immutable: refuse to flush updates or deletes."""
    for obj in session.deleted:
        if isinstance(obj, Base):
            raise AppendOnlyViolation(f"Refusing to delete {obj!r}: records are append-only")
    for obj in session.dirty:
        if isinstance(obj, Base) and session.is_modified(obj, include_collections=False):
            raise AppendOnlyViolation(f"Refusing to update {obj!r}: records are append-only")


def _reject_bulk_mutations(orm_execute_state):
    """Bulk UPDATE and DELETE statements bypass flush; refuse them too."""
    if orm_execute_state.is_update or orm_execute_state.is_delete:
        raise AppendOnlyViolation("Refusing bulk UPDATE/DELETE: records are append-only")


def _translate_integrity_error(exc: IntegrityError, table: str) -> ConstraintViolation:
    """Map a SQLite integrity failure onto the storage error taxonomy."""
    message = str(exc.orig)
    logger.info("Integrity failure on %s: %s", table, message)

    match = _NOT_NULL_RE.search(message)
    if match:
        return MissingRequiredField(f"{match.group(1)}.{match.group(2)} is required",
                                    table=match.group(1), field=match.group(2))
    if 'FOREIGN KEY constraint failed' in message:
        return ForeignKeyViolation(f"{table}: referenced row does not exist", table=table)
    return ConstraintViolation(f"{table}: {message}", table=table)


class Database:
    """Database manager for the network research store."""

    def __init__(self, db_path: Optional[str] = None, echo: Optional[bool] = None):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ':memory:'.
                     If None, uses RESEARCH_DB_PATH from settings.
            echo: Log emitted SQL. If None, uses SQL_ECHO from settings.
        """
        if db_path is None:
            db_path = settings.RESEARCH_DB_PATH
        if echo is None:
            echo = settings.SQL_ECHO

        self.db_path = db_path
        if db_path == ':memory:':
            # One shared connection so every thread sees the same database
            self.engine = create_engine('sqlite://', echo=echo, poolclass=StaticPool,
                                        connect_args={'check_same_thread': False})
            # Transactions on the shared connection must not interleave
            self._scope_lock = threading.RLock()
        else:
            # Ensure data directory exists
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(f'sqlite:///{db_path}', echo=echo)
            self._scope_lock = nullcontext()

        # Session factory
        event.listen(self.engine, 'connect', _configure_sqlite_connection)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        event.listen(self.SessionLocal, 'before_flush', _reject_mutations)
        event.listen(self.SessionLocal, 'do_orm_execute', _reject_bulk_mutations)

        # Create tables, indexes and the performance view if they don't exist
        Base.metadata.create_all(self.engine)
        logger.debug("Opened research database at %s", db_path)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Transactional scope around a series of operations.

        Commits on success, rolls back on any exception, always closes.
        Scopes on an in-memory database run one at a time.
        """
        with self._scope_lock:
            session = self.get_session()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def dispose(self):
        """Close all pooled connections."""
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------

    def _add(self, session: Session, model: Type[Base], record: Record):
        obj = model(**record.to_row())
        session.add(obj)
        try:
            session.flush()
        except IntegrityError as e:
            raise _translate_integrity_error(e, record.table_name) from e
        logger.debug("Inserted %r", obj)
        return obj

    def _require(self, session: Session, model: Type[Base], table: str, field: str, value: int):
        """Raise ForeignKeyViolation unless the referenced row exists."""
        if session.get(model, value) is None:
            raise ForeignKeyViolation(
                f"{table}.{field}={value} references a missing {model.__tablename__} row",
                table=table, field=field, value=value
            )

    def add_network(self, session: Session, record: RecordData) -> Network:
        """
        Add a network to the catalog within an existing session.

        Args:
            session: Database session
            record: NetworkRecord or mapping with network fields

        Returns:
            Network object (flushed, identity assigned)
        """
        return self._add(session, Network, NetworkRecord.from_data(record))

    def add_algorithm(self, session: Session, record: RecordData) -> Algorithm:
        """Add an algorithm to the catalog within an existing session."""
        return self._add(session, Algorithm, AlgorithmRecord.from_data(record))

    def add_system_config(self, session: Session, record: RecordData) -> SystemConfig:
        """Add a system configuration within an existing session."""
        return self._add(session, SystemConfig, SystemConfigRecord.from_data(record))

    def add_experiment(self, session: Session, record: RecordData) -> Experiment:
        """
        Record one benchmark run within an existing session.

        The referenced network, algorithm and system config must already exist.
        Harness-level inconsistencies (e.g. a failed run without an error
        message) are stored as observed and logged as warnings.

        Args:
            session: Database session
            record: ExperimentRecord or mapping with experiment fields

        Returns:
            Experiment object (flushed, identity assigned)

        Raises:
            ForeignKeyViolation: A referenced row does not exist
        """
        record = ExperimentRecord.from_data(record)
        self._require(session, Network, 'experiments', 'network_id', record.network_id)
        self._require(session, SystemConfig, 'experiments', 'system_config_id', record.system_config_id)
        algorithm = session.get(Algorithm, record.algorithm_id)
        if algorithm is None:
            raise ForeignKeyViolation(
                f"experiments.algorithm_id={record.algorithm_id} references a missing algorithms row",
                table='experiments', field='algorithm_id', value=record.algorithm_id
            )

        for warning in record.audit(algorithm.category):
            logger.warning("Experiment on network %s with algorithm '%s': %s",
                           record.network_id, algorithm.name, warning)

        return self._add(session, Experiment, record)

    def add_visualization(self, session: Session, record: RecordData) -> Visualization:
        """Add a rendered layout of an existing network within a session."""
        record = VisualizationRecord.from_data(record)
        self._require(session, Network, 'visualizations', 'network_id', record.network_id)
        return self._add(session, Visualization, record)

    def insert_network(self, record: RecordData) -> int:
        """Insert a network in its own transaction and return its network_id."""
        with self.session_scope() as session:
            return self.add_network(session, record).network_id

    def insert_algorithm(self, record: RecordData) -> int:
        """Insert an algorithm in its own transaction and return its algorithm_id."""
        with self.session_scope() as session:
            return self.add_algorithm(session, record).algorithm_id

    def insert_system_config(self, record: RecordData) -> int:
        """Insert a system config in its own transaction and return its config_id."""
        with self.session_scope() as session:
            return self.add_system_config(session, record).config_id

    def insert_experiment(self, record: RecordData) -> int:
        """Insert an experiment in its own transaction and return its experiment_id."""
        with self.session_scope() as session:
            return self.add_experiment(session, record).experiment_id

    def insert_visualization(self, record: RecordData) -> int:
        """Insert a visualization in its own transaction and return its viz_id."""
        with self.session_scope() as session:
            return self.add_visualization(session, record).viz_id

    def get_or_create_algorithm(self, session: Session, record: RecordData) -> Algorithm:
        """
        Get the catalog row for an identical algorithm or create a new one.

        Algorithms are identical when name, category, implementation, version
        and parameters all match.
        """
        record = AlgorithmRecord.from_data(record)
        candidates = session.query(Algorithm).filter(
            Algorithm.name == record.name,
            Algorithm.category == record.category,
            Algorithm.implementation == record.implementation,
            Algorithm.version.is_(None) if record.version is None else Algorithm.version == record.version
        ).order_by(Algorithm.algorithm_id).all()

        # JSON equality is compared in Python; key order is irrelevant
        for algorithm in candidates:
            if (algorithm.parameters or None) == (record.parameters or None):
                return algorithm
        return self._add(session, Algorithm, record)

    def get_or_create_system_config(self, session: Session, record: RecordData) -> SystemConfig:
        """Get the row for an identical environment snapshot or create a new one."""
        record = SystemConfigRecord.from_data(record)
        query = session.query(SystemConfig)
        for field, value in record.model_dump(exclude={'created_at'}).items():
            column = getattr(SystemConfig, field)
            query = query.filter(column.is_(None) if value is None else column == value)

        config = query.order_by(SystemConfig.config_id).first()
        if config:
            return config
        return self._add(session, SystemConfig, record)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_network(self, session: Session, network_id: int) -> Optional[Network]:
        """Get network by ID."""
        return session.get(Network, network_id)

    def get_algorithm(self, session: Session, algorithm_id: int) -> Optional[Algorithm]:
        """Get algorithm by ID."""
        return session.get(Algorithm, algorithm_id)

    def get_system_config(self, session: Session, config_id: int) -> Optional[SystemConfig]:
        """Get system config by ID."""
        return session.get(SystemConfig, config_id)

    def get_experiment(self, session: Session, experiment_id: int) -> Optional[Experiment]:
        """Get experiment by ID."""
        return session.get(Experiment, experiment_id)

    def get_visualization(self, session: Session, viz_id: int) -> Optional[Visualization]:
        """Get visualization by ID."""
        return session.get(Visualization, viz_id)

    def find_networks(
        self,
        session: Session,
        min_nodes: Optional[int] = None,
        max_nodes: Optional[int] = None,
        min_edges: Optional[int] = None,
        max_edges: Optional[int] = None,
        source: Optional[str] = None,
        network_type: Optional[str] = None
    ) -> List[Network]:
        """
        Find networks by size range and provenance.

        Size bounds are inclusive. Results are ordered by size, smallest first.
        """
        query = session.query(Network)

        if min_nodes is not None:
            query = query.filter(Network.node_count >= min_nodes)
        if max_nodes is not None:
            query = query.filter(Network.node_count <= max_nodes)
        if min_edges is not None:
            query = query.filter(Network.edge_count >= min_edges)
        if max_edges is not None:
            query = query.filter(Network.edge_count <= max_edges)
        if source:
            query = query.filter(Network.source == source)
        if network_type:
            query = query.filter(Network.network_type == network_type)

        return query.order_by(Network.node_count, Network.edge_count, Network.network_id).all()

    def find_algorithms(
        self,
        session: Session,
        category: Optional[str] = None,
        implementation: Optional[str] = None
    ) -> List[Algorithm]:
        """Find algorithms by category and/or implementation."""
        query = session.query(Algorithm)
        if category:
            query = query.filter(Algorithm.category == category)
        if implementation:
            query = query.filter(Algorithm.implementation == implementation)
        return query.order_by(Algorithm.algorithm_id).all()

    def query_experiments(
        self,
        session: Session,
        network_id: Optional[int] = None,
        algorithm_id: Optional[int] = None,
        system_config_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        success: Optional[bool] = None,
        limit: Optional[int] = None
    ) -> List[Experiment]:
        """
        Query experiments by foreign keys and run time range.

        Args:
            session: Database session
            network_id: Only runs on this network
            algorithm_id: Only runs of this algorithm
            system_config_id: Only runs on this environment
            since: Inclusive lower bound on run_datetime
            until: Inclusive upper bound on run_datetime
            success: Only successful (True) or failed (False) runs
            limit: Maximum number of rows

        Returns:
            Experiments ordered by run_datetime, then experiment_id
        """
        query = session.query(Experiment)

        if network_id is not None:
            query = query.filter(Experiment.network_id == network_id)
        if algorithm_id is not None:
            query = query.filter(Experiment.algorithm_id == algorithm_id)
        if system_config_id is not None:
            query = query.filter(Experiment.system_config_id == system_config_id)
        if since is not None:
            query = query.filter(Experiment.run_datetime >= to_naive_utc(since))
        if until is not None:
            query = query.filter(Experiment.run_datetime <= to_naive_utc(until))
        if success is not None:
            query = query.filter(Experiment.success == success)

        query = query.order_by(Experiment.run_datetime, Experiment.experiment_id)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def list_visualizations(self, session: Session, network_id: Optional[int] = None) -> List[Visualization]:
        """List visualizations, optionally for a single network."""
        query = session.query(Visualization)
        if network_id is not None:
            query = query.filter(Visualization.network_id == network_id)
        return query.order_by(Visualization.viz_id).all()

    def algorithm_performance(
        self,
        session: Session,
        category: Optional[str] = None,
        network_name: Optional[str] = None
    ) -> List[AlgorithmPerformance]:
        """
        Read the algorithm_performance view.

        Args:
            session: Database session
            category: Only algorithms of this category
            network_name: Only networks with this name

        Returns:
            Rows ordered by network name, then algorithm name
        """
        conditions = []
        params = {}
        if category:
            conditions.append('category = :category')
            params['category'] = category
        if network_name:
            conditions.append('network_name = :network_name')
            params['network_name'] = network_name

        where = f" WHERE {' AND '.join(conditions)}" if conditions else ''
        sql = (
            f"SELECT {', '.join(ALGORITHM_PERFORMANCE_COLUMNS)} FROM {ALGORITHM_PERFORMANCE_VIEW}"
            f"{where} ORDER BY network_name, algorithm_name"
        )
        rows = session.execute(text(sql), params).mappings().all()
        return [AlgorithmPerformance(**row) for row in rows]


