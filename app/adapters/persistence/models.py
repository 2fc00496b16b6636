"""SQLAlchemy ORM models — maps to PostgreSQL tables.

Table and column names are part of the Decision Model's instruction
(``app/adapters/llm/prompts.py``); keep both in sync.
"""

from datetime import datetime

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.adapters.persistence.database import Base


class BusinessUnitModel(Base):
    __tablename__ = "business_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False)
    office: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    managers: Mapped[list["ManagerModel"]] = relationship(back_populates="business_unit")

    __table_args__ = (Index("idx_business_units_company", "company_id"),)


class ManagerModel(Base):
    __tablename__ = "managers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    office_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("business_units.id"), nullable=False
    )
    current_load: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    business_unit: Mapped["BusinessUnitModel"] = relationship(back_populates="managers")

    __table_args__ = (
        Index("idx_managers_office", "office_id"),
        Index("idx_managers_company", "company_id"),
    )


class TicketModel(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(Integer, nullable=False)
    guid: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    segment: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    analysis: Mapped["TicketAnalysisModel | None"] = relationship(
        back_populates="ticket", uselist=False
    )
    assignments: Mapped[list["AssignmentModel"]] = relationship(back_populates="ticket")

    __table_args__ = (
        Index("idx_tickets_company", "company_id"),
        Index("idx_tickets_segment", "segment"),
    )


class TicketAnalysisModel(Base):
    __tablename__ = "ticket_analysis"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tickets.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    ticket_type: Mapped[str] = mapped_column(String(50), nullable=False)
    sentiment: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    language: Mapped[str] = mapped_column(String(5), nullable=False, default="RU")
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    ticket: Mapped["TicketModel"] = relationship(back_populates="analysis")

    __table_args__ = (Index("idx_analysis_type", "ticket_type"),)


class AssignmentModel(Base):
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Not unique: routing the same ticket twice creates a second row.
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    analysis_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("ticket_analysis.id", ondelete="SET NULL"), nullable=True
    )
    manager_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("managers.id"), nullable=False
    )
    office_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("business_units.id"), nullable=True
    )
    assignment_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    ticket: Mapped["TicketModel"] = relationship(back_populates="assignments")

    __table_args__ = (
        Index("idx_assignments_ticket", "ticket_id"),
        Index("idx_assignments_manager", "manager_id"),
    )


class RoundRobinStateModel(Base):
    __tablename__ = "round_robin_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rr_key: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
