"""
Shared fixtures: in-memory database, fake recipe catalog and a manual clock.
"""
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.catalog_client import RecipeCatalogClient
from app.core.config import Settings
from app.db import crud_plans, crud_users
from app.db.models import Base
from app.db.schema import DietaryPreferences, PantryItem
from app.db.session import get_db
from app.services.plan_service import PlanService, get_plan_service
from app.services.rate_budget import RateBudgetTracker
from app.services.recipe_cache import ResultCache

TODAY = date(2024, 3, 4)

DEFAULT_DETAIL_INGREDIENTS = [
    {"name": "tomatoes", "nameClean": "tomate", "original": "2 kg tomatoes", "amount": 2, "unit": "kg"},
    {"name": "milk", "nameClean": "leche", "original": "1 l milk", "amount": 1, "unit": "l"},
]


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCatalog:
    """Serves complexSearch and recipe information the way the real catalog does."""

    def __init__(self):
        self.requests = []
        self.fail = False
        self.result_limit = None
        self.failing_detail_ids = set()
        self.detail_ingredients = list(DEFAULT_DETAIL_INGREDIENTS)
        self._next_ids = {"breakfast": 1000, "main course": 2000}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def search_requests(self):
        return [r for r in self.requests if r.url.path.endswith("/complexSearch")]

    @property
    def detail_requests(self):
        return [r for r in self.requests if r.url.path.endswith("/information")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(500, json={"message": "catalog down"})

        path = request.url.path
        if path.endswith("/complexSearch"):
            number = int(request.url.params["number"])
            if self.result_limit is not None:
                number = min(number, self.result_limit)
            meal_type = request.url.params.get("type", "main course")
            results = [self.summary(self._take_id(meal_type)) for _ in range(number)]
            return httpx.Response(200, json={"results": results, "totalResults": len(results)})

        if path.endswith("/information"):
            recipe_id = int(path.split("/")[-2])
            if recipe_id in self.failing_detail_ids:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json=self.detail(recipe_id))

        return httpx.Response(404)

    def _take_id(self, meal_type: str) -> int:
        recipe_id = self._next_ids.setdefault(meal_type, 3000)
        self._next_ids[meal_type] = recipe_id + 1
        return recipe_id

    @staticmethod
    def summary(recipe_id: int) -> dict:
        return {
            "id": recipe_id,
            "title": f"Receta {recipe_id}",
            "image": f"https://img.example/{recipe_id}.jpg",
            "readyInMinutes": 20,
            "servings": 2,
            "missedIngredients": [{"name": "tomato", "amount": 1, "unit": "kg"}],
            "usedIngredients": [],
        }

    def detail(self, recipe_id: int) -> dict:
        return {
            "id": recipe_id,
            "title": f"Receta {recipe_id}",
            "image": f"https://img.example/{recipe_id}.jpg",
            "readyInMinutes": 20,
            "servings": 2,
            "sourceUrl": f"https://recipes.example/{recipe_id}",
            "vegetarian": True,
            "vegan": False,
            "glutenFree": True,
            "dairyFree": False,
            "extendedIngredients": self.detail_ingredients,
            "instructions": "<ol><li>Picar los tomates</li><li>Cocinar 10 minutos</li></ol>",
            "analyzedInstructions": [{
                "name": "",
                "steps": [
                    {
                        "number": 1,
                        "step": "Picar los tomates",
                        "ingredients": [{"id": 11529, "name": "tomato", "localizedName": "tomato", "image": "tomato.png"}],
                        "equipment": [{"id": 404745, "name": "knife", "localizedName": "knife", "image": "knife.jpg"}],
                    },
                    {"number": 2, "step": "Cocinar 10 minutos", "ingredients": [], "equipment": []},
                ],
            }],
        }


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        catalog_api_keys="test-key",
        catalog_key_policy="first",
        catalog_base_url="https://catalog.test/recipes",
        plan_trigger_delay_seconds=0,
    )


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def budget(settings, clock):
    return RateBudgetTracker(
        daily_limit=settings.daily_point_limit,
        per_plan_cap=settings.max_points_per_plan,
        clock=clock,
    )


@pytest.fixture
def cache(clock):
    return ResultCache(clock=clock)


@pytest.fixture
def catalog_client(budget, cache, fake_catalog, settings):
    return RecipeCatalogClient(
        budget,
        cache,
        transport=fake_catalog.transport,
        today=lambda: TODAY,
        settings=settings,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Create a user with an optional pantry; returns its id."""

    def _make_user(name="Ana", pantry=None, preferences=None):
        user = crud_users.user.create_with_pantry(
            db,
            crud_users.UserCreate(name=name, preferences=preferences or DietaryPreferences()),
            pantry or [],
        )
        return user.id

    return _make_user


@pytest.fixture
def make_plan(db):
    """Create a PENDING plan; returns its id."""

    def _make_plan(user_id, start=TODAY, end=TODAY):
        plan = crud_plans.plan.create_pending(
            db,
            crud_plans.PlanCreate(user_id=user_id, start_date=start, end_date=end),
        )
        return plan.id

    return _make_plan


@pytest.fixture
def pantry_item():
    def _pantry_item(name, quantity, unit):
        return PantryItem(ingredient_id=f"ing-{name}", name=name, quantity=quantity, unit=unit)

    return _pantry_item


@pytest.fixture
def plan_service(session_factory, settings, fake_catalog):
    return PlanService(
        session_factory,
        settings=settings,
        transport=fake_catalog.transport,
        today=lambda: TODAY,
    )


@pytest.fixture
def client(plan_service, session_factory):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_plan_service] = lambda: plan_service
    # Not used as a context manager: the lifespan (and its sweeps) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()
