"""
Fixtures de pruebas: contexto sobre SQLite temporal y espejo remoto falso.
"""
import pytest

from avicontrol.core.auth.schemas import Principal
from avicontrol.core.context import AppContext
from avicontrol.shared.schemas.entities import User, UserRole
from avicontrol.shared.storage import Collection
from tests.fakes import FakeMirror, make_settings


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def mirror():
    return FakeMirror()


@pytest.fixture
def ctx(settings, mirror):
    context = AppContext(settings, mirror_transport=mirror.transport)
    yield context
    context.db_engine.dispose()


@pytest.fixture
def store(ctx):
    return ctx.store


@pytest.fixture
def hierarchy(store):
    """
    admin (1)
    ├── general  ── operator
    └── general2 ── operator2
    """
    users = {
        "general": User(id="g1", username="general", password="x", name="General", role=UserRole.GENERAL, parent_id="1"),
        "operator": User(id="o1", username="operador", password="x", name="Operador", role=UserRole.OPERATOR, parent_id="g1"),
        "general2": User(id="g2", username="general2", password="x", name="General 2", role=UserRole.GENERAL, parent_id="1"),
        "operator2": User(id="o2", username="operador2", password="x", name="Operador 2", role=UserRole.OPERATOR, parent_id="g2"),
    }
    for user in users.values():
        store.upsert(Collection.USERS, user)
    users["admin"] = store.get_by_id(Collection.USERS, "1")
    return users


@pytest.fixture
def principals(hierarchy):
    return {name: Principal.from_user(user) for name, user in hierarchy.items()}
