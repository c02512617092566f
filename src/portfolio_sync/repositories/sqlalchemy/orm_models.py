"""SQLAlchemy ORM model definitions."""

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Float,
    Integer,
    Text,
    Enum as SqlEnum,
)

from portfolio_sync.repositories.sqlalchemy.database import Base
from portfolio_sync.domain.models.enums import ContributionChangeKind


class LocalKeyValueORM(Base):
    """SQLAlchemy model for the on-device key/value cache."""

    __tablename__ = "local_kv"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)


class UserPreferencesORM(Base):
    """SQLAlchemy model for a user's calculator inputs (one row per user)."""

    __tablename__ = "user_preferences"

    user_id = Column(String(64), primary_key=True)
    starting_amount = Column(Float, nullable=False, default=0.0)
    monthly_amount = Column(Float, nullable=False, default=500.0)
    years = Column(Integer, nullable=False, default=20)
    current_age = Column(Integer, nullable=True)
    hurdle_rate = Column(Float, nullable=False, default=30.0)
    selected_asset = Column(String(32), nullable=False, default="BTC")
    custom_cagr = Column(Float, nullable=False, default=30.0)

    # Contribution change variant (NULL kind = no change)
    contribution_change_kind = Column(SqlEnum(ContributionChangeKind), nullable=True)
    contribution_change_year = Column(Integer, nullable=True)
    boost_amount = Column(Float, nullable=True)

    use_conservative_rate = Column(Boolean, nullable=False, default=False)
    use_declining_rates = Column(Boolean, nullable=False, default=False)
    phase1_rate = Column(Float, nullable=False, default=30.0)
    phase2_rate = Column(Float, nullable=False, default=20.0)
    phase3_rate = Column(Float, nullable=False, default=15.0)
    use_inflation_adjustment = Column(Boolean, nullable=False, default=False)
    inflation_rate = Column(Float, nullable=False, default=3.0)

    updated_at = Column(DateTime, nullable=True)


class PortfolioEntryORM(Base):
    """SQLAlchemy model for PortfolioEntry (actual vs target observation)."""

    __tablename__ = "portfolio_entries"

    entry_id = Column(String(36), primary_key=True)
    owner_id = Column(String(64), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    target = Column(Float, nullable=False)
    variance = Column(Float, nullable=False)
    variance_percentage = Column(Float, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)


class ScenarioORM(Base):
    """SQLAlchemy model for a saved scenario."""

    __tablename__ = "scenarios"

    scenario_id = Column(String(36), primary_key=True)
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    inputs_json = Column(Text, nullable=False)
    results_json = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
