import random
from unittest import mock

import pytest
from pymongo.errors import AutoReconnect, OperationFailure

from web_store.crud import find_by_names, find_document, insert_documents, update_document
from web_store.errors import DatabaseConnectionError, QueryError, SchemaValidationError
from web_store.schema import PRODUCT_RULE


def _seed(client_factory, docs):
    insert_documents("web_store", "products", docs, schema_rule=PRODUCT_RULE, client_factory=client_factory)


def _strip_ids(docs):
    return [{k: v for k, v in d.items() if k != "_id"} for d in docs]


CATALOG = [
    {"name": f"Product {i}", "quantity": i * 10, "availability": i % 2 == 0}
    for i in range(8)
]


@pytest.mark.parametrize("seed", [0, 1, 2])
@pytest.mark.parametrize("wanted", [set(), {"Product 1"}, {"Product 0", "Product 5", "Product 7"}, {"Missing", "Product 3"}])
def test_find_by_names_returns_exactly_matching_documents(client_factory, seed, wanted):
    docs = list(CATALOG)
    random.Random(seed).shuffle(docs)
    _seed(client_factory, docs)

    found = find_by_names("web_store", "products", wanted, client_factory=client_factory)

    expected = sorted((d for d in CATALOG if d["name"] in wanted), key=lambda d: d["name"])
    assert sorted(_strip_ids(found), key=lambda d: d["name"]) == expected


def test_find_by_names_accepts_product_documents(client_factory):
    _seed(client_factory, CATALOG)
    found = find_by_names("web_store", "products", CATALOG[:3], client_factory=client_factory)
    assert {d["name"] for d in found} == {"Product 0", "Product 1", "Product 2"}


def test_find_by_names_no_match_is_empty(client_factory):
    _seed(client_factory, CATALOG)
    assert find_by_names("web_store", "products", {"Nothing"}, client_factory=client_factory) == []


def test_find_document_absent_is_none(client_factory):
    assert find_document("web_store", "products", {"name": "X"}, client_factory=client_factory) is None


def test_update_round_trip(client_factory, product_x):
    _seed(client_factory, [product_x])

    summary = update_document(
        "web_store", "products", {"name": "X"}, {"quantity": 20},
        schema_rule=PRODUCT_RULE, client_factory=client_factory,
    )
    doc = find_document("web_store", "products", {"name": "X"}, client_factory=client_factory)

    assert (summary.matched_count, summary.modified_count) == (1, 1)
    assert _strip_ids([doc]) == [{"name": "X", "quantity": 20, "availability": True}]


def test_update_without_match_changes_nothing(client_factory, products_collection):
    _seed(client_factory, CATALOG)
    before = list(products_collection.find())

    summary = update_document(
        "web_store", "products", {"name": "Nothing"}, {"quantity": 1},
        schema_rule=PRODUCT_RULE, client_factory=client_factory,
    )

    assert (summary.matched_count, summary.modified_count) == (0, 0)
    assert list(products_collection.find()) == before


def test_update_touches_only_first_match(client_factory, products_collection):
    _seed(client_factory, [
        {"name": "Twin", "quantity": 1, "availability": True},
        {"name": "Twin", "quantity": 1, "availability": True},
    ])

    summary = update_document(
        "web_store", "products", {"name": "Twin"}, {"quantity": 9},
        schema_rule=PRODUCT_RULE, client_factory=client_factory,
    )

    assert summary.matched_count == 1
    assert sorted(d["quantity"] for d in products_collection.find()) == [1, 9]


def test_update_violating_schema_is_rejected(client_factory, products_collection, product_x):
    _seed(client_factory, [product_x])

    with pytest.raises(SchemaValidationError) as excinfo:
        update_document(
            "web_store", "products", {"name": "X"}, {"availability": "soon"},
            schema_rule=PRODUCT_RULE, client_factory=client_factory,
        )

    assert excinfo.value.field == "availability"
    assert products_collection.find_one({"name": "X"})["availability"] is True


@pytest.mark.parametrize("patch", [{}, {"$inc": {"quantity": 1}}])
def test_update_rejects_empty_or_operator_patch(client_factory, patch):
    with pytest.raises(ValueError):
        update_document("web_store", "products", {"name": "X"}, patch, client_factory=client_factory)


def test_lost_connection_is_a_connection_error():
    client = mock.MagicMock()
    collection = client.__getitem__.return_value.__getitem__.return_value
    collection.find_one.side_effect = AutoReconnect("connection reset")

    with pytest.raises(DatabaseConnectionError):
        find_document("web_store", "products", {"name": "X"}, client_factory=lambda: client)
    client.close.assert_called_once()


def test_find_by_names_rejects_single_string(client_factory):
    with pytest.raises(TypeError):
        find_by_names("web_store", "products", "Product 1", client_factory=client_factory)


def test_find_by_names_rejects_document_without_name(client_factory):
    with pytest.raises(ValueError):
        find_by_names("web_store", "products", [{"quantity": 1}], client_factory=client_factory)


def test_rejected_read_is_logged_and_classified(caplog):
    client = mock.MagicMock()
    collection = client.__getitem__.return_value.__getitem__.return_value
    collection.find.side_effect = OperationFailure("not authorized on web_store", code=13)

    with pytest.raises(QueryError):
        find_by_names("web_store", "products", ["X"], client_factory=lambda: client)
    assert "not authorized on web_store" in caplog.text
    client.close.assert_called_once()
