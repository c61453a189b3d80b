"""
SQLAlchemy database models.
These define the database schema and relationships.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime
import uuid

from app.core.constants import PlanState

Base = declarative_base()


class UserModel(Base):
    """User owning plans and a pantry. Managed by the accounts service."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    preferences = Column(Text, nullable=True)  # JSON DietaryPreferences
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    pantry_items = relationship(
        "PantryItemModel",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="PantryItemModel.id",
    )
    plans = relationship("WeeklyPlanModel", back_populates="user", cascade="all, delete-orphan")


class PantryItemModel(Base):
    """Inventory entry of a user's pantry."""
    __tablename__ = "pantry_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ingredient_id = Column(String(36), nullable=False, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False, default="otros")
    quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String(50), nullable=True)
    storage_location = Column(String(50), nullable=False, default="desconocido")
    last_updated = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("UserModel", back_populates="pantry_items")


class WeeklyPlanModel(Base):
    """Weekly plan aggregate root."""
    __tablename__ = "weekly_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    state = Column(String(20), nullable=False, default=PlanState.PENDING.value, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("UserModel", back_populates="plans")
    days = relationship(
        "PlanDayModel",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanDayModel.position",
    )
    shopping_items = relationship(
        "ShoppingListItemModel",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="ShoppingListItemModel.position",
    )


class PlanDayModel(Base):
    """Calendar day within a plan."""
    __tablename__ = "plan_days"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("weekly_plans.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    day = Column(Date, nullable=False)

    # Relationships
    plan = relationship("WeeklyPlanModel", back_populates="days")
    meals = relationship(
        "PlanMealModel",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="PlanMealModel.position",
    )


class PlanMealModel(Base):
    """Recipe assigned to a meal slot of a day."""
    __tablename__ = "plan_meals"

    id = Column(Integer, primary_key=True, index=True)
    day_id = Column(Integer, ForeignKey("plan_days.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    slot = Column(String(20), nullable=False)  # "breakfast", "lunch", "dinner"
    recipe_id = Column(Integer, nullable=False)  # catalog id, negative for local recipes
    recipe_name = Column(String(255), nullable=False)
    missing_ingredients = Column(Text, nullable=True)  # JSON list

    # Relationships
    day = relationship("PlanDayModel", back_populates="meals")


class ShoppingListItemModel(Base):
    """Consolidated shopping list entry of a plan."""
    __tablename__ = "shopping_list_items"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("weekly_plans.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String(50), nullable=True)
    category = Column(String(50), nullable=False, default="otros")
    purchased = Column(Boolean, nullable=False, default=False)

    # Relationships
    plan = relationship("WeeklyPlanModel", back_populates="shopping_items")
