import pytest
from fastapi.testclient import TestClient

from puntolector.database import init_schema, make_engine, make_session_factory
from puntolector.main import create_app
from puntolector.storage import StorageError


class FakeStorage:
    """In-memory stand-in for the object storage client."""

    def __init__(self):
        self.objects = {}
        self.fail = False

    def upload(self, bucket, path, data, content_type):
        if self.fail:
            raise StorageError("boom")
        self.objects[(bucket, path)] = (data, content_type)
        return f"https://storage.test/{bucket}/{path}"

    def remove(self, bucket, path):
        if self.fail:
            raise StorageError("boom")
        self.objects.pop((bucket, path), None)


@pytest.fixture
def session():
    engine = make_engine("sqlite://")
    init_schema(engine)
    factory = make_session_factory(engine)
    db = factory()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(storage):
    app = create_app(database_url="sqlite://", storage=storage)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def add(client):
    """Insert ORM objects straight into the app's database."""

    def _add(*objects):
        factory = client.app.state.session_factory
        with factory() as db, db.begin():
            db.add_all(objects)
        return objects[0] if len(objects) == 1 else objects

    return _add
