import pytest

from content_hub.services.notifier import ChangeNotifier
from content_hub.services.plan_executor import PlanExecutor
from content_hub.services.plan_store import PlanStore
from fakes import ARTICLE, PROJECT, InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore({"articles": [ARTICLE], "projects": [PROJECT]})


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def plan_store(store, notifier) -> PlanStore:
    return PlanStore(store, notifier)


@pytest.fixture
def executor(store, plan_store) -> PlanExecutor:
    return PlanExecutor(store, plan_store)
