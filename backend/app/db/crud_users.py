"""
CRUD operations for users and their pantry.

Profile and pantry editing belong to the accounts service; the planner only
reads profiles and appends purchased items to the pantry.
"""
from typing import List, Optional
from datetime import datetime
import json

from pydantic import BaseModel
from sqlalchemy.orm import Session, selectinload

from app.db.base_crud import CRUDBase
from app.db.models import UserModel, PantryItemModel
from app.db.schema import DietaryPreferences, PantryItem, UserProfile
from app.db.serializers import UserSerializer


class UserCreate(BaseModel):
    name: str
    email: Optional[str] = None
    preferences: DietaryPreferences = DietaryPreferences()


class CRUDUser(CRUDBase[UserModel, UserCreate, UserCreate]):
    def create_with_pantry(
        self,
        db: Session,
        user_in: UserCreate,
        pantry: Optional[List[PantryItem]] = None
    ) -> UserModel:
        """
        Create a user with its dietary preferences and initial pantry.
        """
        user = UserModel(
            name=user_in.name,
            email=user_in.email,
            preferences=json.dumps(user_in.preferences.model_dump(), ensure_ascii=False),
        )
        db.add(user)
        db.flush()

        for item in pantry or []:
            db.add(self._pantry_row(user.id, item))

        db.commit()
        db.refresh(user)
        return user

    def get_profile(self, db: Session, user_id: int) -> Optional[UserProfile]:
        """Load a user with its pantry as a UserProfile, or None."""
        user = (
            db.query(UserModel)
            .options(selectinload(UserModel.pantry_items))
            .filter(UserModel.id == user_id)
            .first()
        )
        if not user:
            return None
        return UserSerializer.model_to_profile(user)

    def exists(self, db: Session, user_id: int) -> bool:
        return db.query(UserModel.id).filter(UserModel.id == user_id).first() is not None

    def append_pantry_items(self, db: Session, user_id: int, items: List[PantryItem]) -> int:
        """
        Append inventory entries to a user's pantry.

        Returns:
            Number of entries added
        """
        user = self.get(db, user_id)
        if not user:
            return 0

        for item in items:
            db.add(self._pantry_row(user_id, item))
        user.updated_at = datetime.utcnow()

        db.commit()
        return len(items)

    @staticmethod
    def _pantry_row(user_id: int, item: PantryItem) -> PantryItemModel:
        return PantryItemModel(
            user_id=user_id,
            ingredient_id=item.ingredient_id,
            name=item.name,
            category=item.category,
            quantity=item.quantity,
            unit=item.unit,
            storage_location=item.storage_location,
            last_updated=item.last_updated or datetime.utcnow(),
        )


user = CRUDUser(UserModel)
