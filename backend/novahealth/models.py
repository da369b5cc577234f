from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="user")  # user/admin
    subscription_plan: Mapped[str] = mapped_column(String(20), default="free")  # free/premium
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    lab_tests: Mapped[list[LabTest]] = relationship(back_populates="user", cascade="all, delete-orphan")


class LabTest(Base):
    __tablename__ = "lab_tests"
    __table_args__ = (Index("ix_lab_tests_user_type_date", "user_id", "type", "test_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)  # blood/dna/rna/hormone/microbiome/other
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[str] = mapped_column(String(255), nullable=False)
    test_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending/processing/completed/failed

    raw_file_url: Mapped[str | None] = mapped_column(String(512), nullable=True)  # minio object url
    next_test_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped[User] = relationship(back_populates="lab_tests")
    results: Mapped[list[LabTestResult]] = relationship(
        back_populates="lab_test",
        cascade="all, delete-orphan",
        order_by="LabTestResult.position",
    )


class LabTestResult(Base):
    __tablename__ = "lab_test_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lab_test_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lab_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # порядок показателей внутри анализа
    position: Mapped[int] = mapped_column(Integer, default=0)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    value: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_range_low: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    reference_range_high: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    is_abnormal: Mapped[bool] = mapped_column(Boolean, default=False)

    lab_test: Mapped[LabTest] = relationship(back_populates="results")


class Supplement(Base):
    __tablename__ = "supplements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    benefits: Mapped[list[str]] = mapped_column(JSON, default=list)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    recommended_dosage: Mapped[str] = mapped_column(String(255), nullable=False)
    # [{"name": ..., "description": ...}]
    recommended_for_conditions: Mapped[list[dict]] = mapped_column(JSON, default=list)
    contraindications: Mapped[list[str]] = mapped_column(JSON, default=list)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class Recommendation(Base):
    __tablename__ = "recommendations"
    __table_args__ = (
        UniqueConstraint("user_id", "lab_test_id", "supplement_id", name="uq_recommendation_triple"),
        CheckConstraint("priority >= 1 AND priority <= 10", name="ck_recommendation_priority"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lab_test_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lab_tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("supplements.id", ondelete="CASCADE"), nullable=False, index=True
    )

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..10, 10 = самый высокий
    dosage: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_accepted: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Без back_populates: коллекции на LabTest/Supplement не нужны и не должны
    # подгружаться лениво в async-сессии.
    supplement: Mapped[Supplement] = relationship()
    lab_test: Mapped[LabTest] = relationship()
