"""web_store/run_demo.py

Provision the ``products`` collection, seed it with the sample products,
read them back, update the first product's quantity and read it again.

Each step opens and closes its own connection. A failing step stops the
run; the steps already done are kept.

Usage:
    MONGO_URI='mongodb+srv://...' python -m web_store.run_demo
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import BaseModel
from pymongo.errors import PyMongoError

from .create_collections import create_collection
from .crud import find_by_names, find_document, insert_documents, update_document
from .errors import WebStoreError
from .models import UpdateSummary, WriteSummary
from .sample_data import COLLECTION_NAME, DATABASE_NAME, PRODUCTS, UPDATED_QUANTITY
from .schema import PRODUCT_RULE

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 52


class DemoReport(BaseModel):
    inserted: WriteSummary
    found: List[dict]
    updated: UpdateSummary
    updated_document: Optional[dict] = None


def setup_logging(debug_mode: bool = False):
    log_level = logging.DEBUG if debug_mode else logging.INFO
    # Avoid adding duplicate handlers if setup_logging is called more than once
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


def run(
    database_name: str = DATABASE_NAME,
    collection_name: str = COLLECTION_NAME,
    products=None,
    client_factory=None,
) -> DemoReport:
    products = list(products if products is not None else PRODUCTS)

    create_collection(database_name, collection_name, PRODUCT_RULE, client_factory=client_factory)

    print(SEPARATOR)
    inserted = insert_documents(
        database_name, collection_name, products, schema_rule=PRODUCT_RULE, client_factory=client_factory
    )
    print(f"✅ Inserted {len(inserted.inserted_ids)} documents")

    print(SEPARATOR)
    found = find_by_names(database_name, collection_name, products, client_factory=client_factory)
    for doc in found:
        print(doc)

    print(SEPARATOR)
    # the full first product is the query, as seeded
    query = products[0].model_dump()
    updated = update_document(
        database_name,
        collection_name,
        query,
        {"quantity": UPDATED_QUANTITY},
        schema_rule=PRODUCT_RULE,
        client_factory=client_factory,
    )

    print(f"\nUpdated response with new quantity: {UPDATED_QUANTITY}")
    updated_document = find_document(
        database_name, collection_name, {"name": products[0].name}, client_factory=client_factory
    )
    print(updated_document)

    return DemoReport(
        inserted=inserted,
        found=found,
        updated=updated,
        updated_document=updated_document,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create the web_store products collection and run sample CRUD queries",
    )
    parser.add_argument("--database", default=DATABASE_NAME, help="Database name")
    parser.add_argument("--collection", default=COLLECTION_NAME, help="Collection name")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    setup_logging(args.debug)

    try:
        run(args.database, args.collection)
    except (WebStoreError, PyMongoError) as e:
        logger.error("Demo aborted: %s", e)
        print(f"❌ {e}")
        return 1

    print("✅ Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
