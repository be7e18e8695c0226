import mongomock
import pytest

from web_store.models import Product


@pytest.fixture
def validators(monkeypatch):
    """Collection validators passed to create_collection, keyed by (db, collection)."""
    recorded = {}
    original = mongomock.Database.create_collection

    # mongomock has no support for collection options such as validators
    def create_collection(self, name, validator=None, **kwargs):
        collection = original(self, name, **kwargs)
        recorded[(self.name, name)] = validator
        return collection

    monkeypatch.setattr(mongomock.Database, "create_collection", create_collection)
    return recorded


@pytest.fixture
def mongo_client(validators):
    client = mongomock.MongoClient()
    yield client
    client.close()


@pytest.fixture
def client_factory(mongo_client):
    return lambda: mongo_client


@pytest.fixture
def products_collection(mongo_client):
    return mongo_client["web_store"]["products"]


@pytest.fixture
def product_x():
    return Product(name="X", quantity=5, availability=True)
