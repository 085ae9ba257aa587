"""SQLAlchemy models for movekit database."""

import uuid
from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class MovementConcept(Base):
    """Taxonomy node (type, category or subcategory)."""

    __tablename__ = "movement_concepts"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    parent_id = Column(String(36), ForeignKey("movement_concepts.id"), nullable=True)
    view_mode = Column(String, nullable=True)
    variant_override = Column(String(32), nullable=True)
    # NULL means a system concept shared by every organization
    organization_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    parent = relationship("MovementConcept", remote_side=[id], backref="children")


class Movement(Base):
    """Ledger row."""

    __tablename__ = "movements"

    id = Column(String(36), primary_key=True, default=_new_id)
    organization_id = Column(String, nullable=False, index=True)
    project_id = Column(String, nullable=True)
    movement_date = Column(Date, nullable=False)
    created_by = Column(String(36), ForeignKey("organization_members.id"), nullable=False)
    description = Column(String, nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    currency_id = Column(String(36), ForeignKey("currencies.id"), nullable=False)
    wallet_id = Column(String(36), ForeignKey("wallets.id"), nullable=False)
    type_id = Column(String(36), ForeignKey("movement_concepts.id"), nullable=False)
    category_id = Column(String(36), ForeignKey("movement_concepts.id"), nullable=True)
    subcategory_id = Column(String(36), nullable=True)
    exchange_rate = Column(Numeric(18, 6), nullable=True)
    conversion_group_id = Column(String(36), nullable=True, index=True)
    transfer_group_id = Column(String(36), nullable=True, index=True)
    contact_id = Column(String, nullable=True)
    member_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    relations = relationship(
        "MovementRelation", back_populates="movement", cascade="all, delete-orphan"
    )


class MovementRelation(Base):
    """Link from a movement to a construction task, subcontract or personnel entry."""

    __tablename__ = "movement_relations"

    id = Column(String(36), primary_key=True, default=_new_id)
    movement_id = Column(String(36), ForeignKey("movements.id"), nullable=False, index=True)
    relation_kind = Column(String, nullable=False)
    target_id = Column(String(36), nullable=False)
    amount = Column(Numeric(14, 2), nullable=True)

    # Relationships
    movement = relationship("Movement", back_populates="relations")


class Currency(Base):
    """Currency enabled for an organization."""

    __tablename__ = "currencies"

    id = Column(String(36), primary_key=True, default=_new_id)
    organization_id = Column(String, nullable=False)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("organization_id", "code", name="uq_currency_org_code"),)


class Wallet(Base):
    """Wallet (cash box, bank account) of an organization."""

    __tablename__ = "wallets"

    id = Column(String(36), primary_key=True, default=_new_id)
    organization_id = Column(String, nullable=False)
    name = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("organization_id", "name", name="uq_wallet_org_name"),)


class OrganizationMember(Base):
    """Member of an organization, linked to a user account."""

    __tablename__ = "organization_members"

    id = Column(String(36), primary_key=True, default=_new_id)
    organization_id = Column(String, nullable=False)
    user_id = Column(String, nullable=False)
    full_name = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_member_org_user"),)


class PickerOption(Base):
    """Selectable construction task, subcontract or personnel entry of a project."""

    __tablename__ = "picker_options"

    id = Column(String(36), primary_key=True, default=_new_id)
    project_id = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False)
    label = Column(String, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
