from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salescoach.models.base import Base, TimestampMixin, UUIDMixin


class RubricConfigModel(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "coaching_rubric_configs"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    categories = relationship(
        "RubricCategoryModel",
        back_populates="rubric",
        cascade="all, delete-orphan",
        order_by="RubricCategoryModel.sort_order",
        lazy="selectin",
    )
    red_flags = relationship(
        "RubricRedFlagModel",
        back_populates="rubric",
        cascade="all, delete-orphan",
        order_by="RubricRedFlagModel.sort_order",
        lazy="selectin",
    )


class RubricCategoryModel(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "rubric_categories"

    rubric_config_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("coaching_rubric_configs.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rubric = relationship("RubricConfigModel", back_populates="categories")
    scoring_criteria = relationship(
        "RubricScoringCriterionModel",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="RubricScoringCriterionModel.score",
        lazy="selectin",
    )


class RubricScoringCriterionModel(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "rubric_scoring_criteria"

    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rubric_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    criteria_text: Mapped[str] = mapped_column(Text, nullable=False)

    category = relationship("RubricCategoryModel", back_populates="scoring_criteria")


class RubricRedFlagModel(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "rubric_red_flags"

    rubric_config_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("coaching_rubric_configs.id", ondelete="CASCADE"),
        nullable=False,
    )
    flag_key: Mapped[str] = mapped_column(String(100), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    threshold_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    threshold_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    rubric = relationship("RubricConfigModel", back_populates="red_flags")
