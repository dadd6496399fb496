"""SQLAlchemy models for sitebooks database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Payee(Base):
    """Payee (vendor) model."""

    __tablename__ = "payees"

    id = Column(Integer, primary_key=True)
    payee_name = Column(String, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    payee_type = Column(String, nullable=False, default="other")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    expenses = relationship("Expense", back_populates="payee")


class Client(Base):
    """Client model."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    client_name = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    revenues = relationship("Revenue", back_populates="client")


class Project(Base):
    """Construction project model."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    project_number = Column(String, unique=True, nullable=False)
    project_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    aliases = relationship("ProjectAlias", back_populates="project", cascade="all, delete-orphan")


class ProjectAlias(Base):
    """Alternate QuickBooks spelling of a project."""

    __tablename__ = "project_aliases"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    alias = Column(String, nullable=False)
    match_type = Column(String, nullable=False, default="exact")
    is_active = Column(Boolean, default=True, nullable=False)

    project = relationship("Project", back_populates="aliases")


class AccountMapping(Base):
    """QuickBooks account path to expense category mapping."""

    __tablename__ = "account_mappings"

    id = Column(Integer, primary_key=True)
    qb_account_full_path = Column(String, unique=True, nullable=False)
    app_category = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ImportBatch(Base):
    """Import batch audit record."""

    __tablename__ = "import_batches"

    id = Column(String(32), primary_key=True)
    file_name = Column(String, nullable=False)
    imported_at = Column(DateTime, default=_utcnow, nullable=False)
    status = Column(String, nullable=False, default="processing")
    total_rows = Column(Integer, default=0, nullable=False)
    expenses_imported = Column(Integer, default=0, nullable=False)
    revenues_imported = Column(Integer, default=0, nullable=False)
    duplicates_skipped = Column(Integer, default=0, nullable=False)
    reimported = Column(Integer, default=0, nullable=False)
    errors = Column(Integer, default=0, nullable=False)
    error_messages = Column(JSON, default=list, nullable=False)
    match_log = Column(JSON, default=list, nullable=False)


class Expense(Base):
    """Expense model."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    payee_id = Column(Integer, ForeignKey("payees.id"), nullable=True)
    description = Column(String, nullable=False, default="")
    name = Column(String, nullable=False, default="")
    category = Column(String, nullable=False)
    transaction_type = Column(String, nullable=False, default="expense")
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    account_name = Column(String, nullable=True)
    account_full_name = Column(String, nullable=True)
    import_batch_id = Column(String(32), ForeignKey("import_batches.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    payee = relationship("Payee", back_populates="expenses")


class Revenue(Base):
    """Revenue (invoice) model."""

    __tablename__ = "revenues"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    description = Column(String, nullable=False, default="")
    name = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    invoice_date = Column(Date, nullable=False)
    invoice_number = Column(String, nullable=True)
    account_name = Column(String, nullable=True)
    account_full_name = Column(String, nullable=True)
    import_batch_id = Column(String(32), ForeignKey("import_batches.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    client = relationship("Client", back_populates="revenues")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
