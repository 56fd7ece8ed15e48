"""SQLAlchemy models for the ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    account_type = Column(String, nullable=False)
    account_number = Column(String, unique=True, nullable=False)
    routing_number = Column(String, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    is_frozen = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account")


class Transaction(Base):
    """Ledger entry model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String, nullable=False)
    transaction_type = Column(String, nullable=False)
    note = Column(String, nullable=True)
    category = Column(String, nullable=True)
    reversed = Column(Boolean, nullable=False, default=False)
    reverses_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_transactions_account_created", "account_id", "created_at"),)

    # Relationships
    account = relationship("Account", back_populates="transactions")


class Notification(Base):
    """Owner notification model."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
