"""
SQLAlchemy ORM models for the reference data tables.

This module defines the schema the compliance engine reads from:
- GRAS ingredients (FDA Generally Recognized As Safe substances)
- Old dietary ingredients (pre-October 15, 1994 grandfather list)
- NDI ingredients (New Dietary Ingredient notifications)
- Major allergens (FALCPA / FASTER Act allergens with derivatives)

List-valued columns are stored as JSON.
"""

from datetime import date, datetime
from typing import Optional
import enum
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Date,
    Text,
    JSON,
    Boolean,
    Index,
    Enum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class GrasStatus(enum.Enum):
    """How an ingredient obtained GRAS status."""
    AFFIRMED = "affirmed"
    NOTICE = "notice"
    SCOGS = "scogs"
    PENDING = "pending"


class GrasIngredient(Base):
    """
    FDA GRAS substance.

    Represents a substance affirmed as GRAS by regulation, by a GRAS notice,
    or by a SCOGS opinion.
    """
    __tablename__ = "gras_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    ingredient_name: Mapped[str] = mapped_column(String(500), nullable=False)
    cas_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    gras_notice_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # e.g. "GRN 000123"
    gras_status: Mapped[GrasStatus] = mapped_column(
        Enum(GrasStatus), nullable=False, default=GrasStatus.AFFIRMED
    )
    source_reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)  # CFR citation
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    approved_uses: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    limitations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    synonyms: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    common_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    technical_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_gras_ingredients_name", "ingredient_name"),
        Index("ix_gras_ingredients_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<GrasIngredient(id={self.id}, name='{self.ingredient_name}')>"


class OldDietaryIngredient(Base):
    """
    Dietary ingredient marketed in the US before October 15, 1994.

    Ingredients on this list need no NDI notification.
    """
    __tablename__ = "old_dietary_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    ingredient_name: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    synonyms: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)  # e.g. "CRN Grandfather List"
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<OldDietaryIngredient(id={self.id}, name='{self.ingredient_name}')>"


class NdiIngredient(Base):
    """New Dietary Ingredient notification filed with the FDA."""
    __tablename__ = "ndi_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    notification_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    report_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ingredient_name: Mapped[str] = mapped_column(String(500), nullable=False)
    firm: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    submission_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    fda_response_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_ndi_ingredients_name", "ingredient_name"),
    )

    def __repr__(self) -> str:
        return f"<NdiIngredient(NDI #{self.notification_number}, name='{self.ingredient_name}')>"


class MajorAllergen(Base):
    """
    Major food allergen.

    ``derivatives`` lists the terms whose presence in an ingredient name
    indicates the allergen.
    """
    __tablename__ = "major_allergens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    allergen_name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    allergen_category: Mapped[str] = mapped_column(String(50), nullable=False)  # milk, egg, tree_nuts...
    common_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    derivatives: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    scientific_names: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    cross_reactive_allergens: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    regulation_citation: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, default="FALCPA Section 403(w), FASTER Act"
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_major_allergens_category", "allergen_category"),
    )

    def __repr__(self) -> str:
        return f"<MajorAllergen(name='{self.allergen_name}', category='{self.allergen_category}')>"
