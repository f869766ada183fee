"""MongoDB-backed document metadata store and usage log."""

import logging

from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from veritas.config import Settings
from veritas.models import DocumentRecord, UsageEntry
from veritas.rag.interfaces import DocumentMetadataStore, UsageSink

logger = logging.getLogger(__name__)

DOCUMENTS_COLLECTION = "documents"
CATEGORIES_COLLECTION = "categories"
USAGE_COLLECTION = "ai_usage_log"


def create_mongodb_client(settings: Settings) -> MongoClient:
    """Create a MongoDB client and check the connection.

    Raises:
        ConnectionFailure: If the server cannot be reached.
    """
    connection_params = {
        "serverSelectionTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
    }
    try:
        client = MongoClient(settings.mongodb_uri, **connection_params)
        client.admin.command("ping")
        return client
    except ConnectionFailure as e:
        raise ConnectionFailure(
            f"Failed to connect to MongoDB: {e}\n"
            "Verify MONGODB_URI and that the server is reachable."
        ) from e


class MongoDocumentStore(DocumentMetadataStore):
    """Document metadata and category membership.

    Documents are stored as ``{_id, title, file_path, file_type,
    category_id}`` and categories as ``{_id, name}``.
    """

    def __init__(self, settings: Settings, client: MongoClient | None = None):
        self.client = client or create_mongodb_client(settings)
        self.db = self.client[settings.mongodb_database]

    def get_documents(self, document_ids: list[str]) -> list[DocumentRecord]:
        if not document_ids:
            return []
        cursor = self.db[DOCUMENTS_COLLECTION].find(
            {"_id": {"$in": list(document_ids)}},
            {"title": 1, "file_path": 1, "file_type": 1},
        )
        return [
            DocumentRecord(
                id=str(doc["_id"]),
                title=doc.get("title") or "",
                file_path=doc.get("file_path"),
                file_type=doc.get("file_type"),
            )
            for doc in cursor
        ]

    def document_ids_for_categories(self, category_names: list[str]) -> set[str]:
        if not category_names:
            return set()
        category_ids = [
            c["_id"]
            for c in self.db[CATEGORIES_COLLECTION].find(
                {"name": {"$in": list(category_names)}}, {"_id": 1}
            )
        ]
        if not category_ids:
            return set()
        return {
            str(doc["_id"])
            for doc in self.db[DOCUMENTS_COLLECTION].find(
                {"category_id": {"$in": category_ids}}, {"_id": 1}
            )
        }


class MongoUsageSink(UsageSink):
    def __init__(self, settings: Settings, client: MongoClient | None = None):
        self.client = client or create_mongodb_client(settings)
        self.collection = self.client[settings.mongodb_database][USAGE_COLLECTION]

    def record(self, entry: UsageEntry) -> bool:
        try:
            result = self.collection.insert_one(entry.model_dump())
        except PyMongoError as e:
            logger.error(f"Failed to insert AI usage log: {e}")
            return False
        return result.acknowledged
