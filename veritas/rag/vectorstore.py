import heapq

from pymilvus import connections, FieldSchema, CollectionSchema, DataType, Collection, utility

from veritas.config import Settings
from veritas.rag.interfaces import SimilaritySearchService

OUTPUT_FIELDS = [
    "id",
    "document_id",
    "document_title",
    "master_name",
    "content",
    "page_number",
    "position",
    "metadata",
    "media_reference",
    "start_timestamp",
    "end_timestamp",
    "created_at",
]

RECENT_BATCH_SIZE = 1000


class MilvusStore(SimilaritySearchService):
    def __init__(self, settings: Settings):
        self.settings = settings
        self.collection_name = settings.milvus_collection
        self._connect()
        self._ensure_collection()

    def _connect(self) -> None:
        alias = "default"
        if connections.has_connection(alias):
            return
        kwargs = {}
        if self.settings.milvus_db:
            kwargs["db_name"] = self.settings.milvus_db
        connections.connect(
            alias=alias,
            host=self.settings.milvus_host,
            port=str(self.settings.milvus_port),
            secure=self.settings.milvus_tls,
            **kwargs,
        )

    def _ensure_collection(self) -> None:
        if utility.has_collection(self.collection_name):
            self.collection = Collection(self.collection_name)
            self.collection.load()
            return

        fields = [
            FieldSchema(name="id", dtype=DataType.VARCHAR, is_primary=True, max_length=64),
            FieldSchema(name="document_id", dtype=DataType.VARCHAR, max_length=64),
            FieldSchema(name="document_title", dtype=DataType.VARCHAR, max_length=512),
            FieldSchema(name="master_name", dtype=DataType.VARCHAR, max_length=256),
            FieldSchema(name="content", dtype=DataType.VARCHAR, max_length=8192),
            FieldSchema(name="page_number", dtype=DataType.INT64),
            FieldSchema(name="position", dtype=DataType.INT64),
            FieldSchema(name="metadata", dtype=DataType.JSON),
            FieldSchema(name="media_reference", dtype=DataType.VARCHAR, max_length=64),
            FieldSchema(name="start_timestamp", dtype=DataType.DOUBLE),
            FieldSchema(name="end_timestamp", dtype=DataType.DOUBLE),
            FieldSchema(name="created_at", dtype=DataType.INT64),
            FieldSchema(name="embedding", dtype=DataType.FLOAT_VECTOR, dim=self.settings.embedding_dim),
        ]
        schema = CollectionSchema(fields=fields, description="Document chunks")
        self.collection = Collection(self.collection_name, schema=schema)
        self.collection.create_index(
            field_name="embedding",
            index_params={
                "index_type": "IVF_FLAT",
                "metric_type": "IP",
                "params": {"nlist": 1024},
            },
        )
        self.collection.load()

    @staticmethod
    def _to_row(entity: dict) -> dict:
        row = {f: entity.get(f) for f in OUTPUT_FIELDS}
        # Milvus stores missing optional values as sentinels
        for key in ("page_number", "position"):
            if row.get(key) is not None and row[key] < 0:
                row[key] = None
        if not row.get("media_reference"):
            row["media_reference"] = None
        return row

    def search(self, query_vector: list[float], threshold: float, limit: int) -> list[dict]:
        results = self.collection.search(
            data=[query_vector],
            anns_field="embedding",
            param={"metric_type": "IP", "params": {"nprobe": 16}},
            limit=limit,
            output_fields=OUTPUT_FIELDS,
        )
        hits = []
        for hit in results[0]:
            if hit.distance < threshold:
                continue
            rec = self._to_row({f: hit.entity.get(f) for f in OUTPUT_FIELDS})
            rec["similarity"] = max(0.0, min(1.0, float(hit.distance)))
            hits.append(rec)
        return hits

    def recent_chunks(self, limit: int) -> list[dict]:
        """Return the newest chunks by ingestion time.

        Milvus queries have no server-side ordering, so the whole
        collection is scanned in batches keeping the ``limit`` newest rows.
        """
        if limit <= 0:
            return []
        iterator = self.collection.query_iterator(
            batch_size=RECENT_BATCH_SIZE,
            expr="created_at >= 0",
            output_fields=OUTPUT_FIELDS,
        )
        newest: list[dict] = []
        try:
            while True:
                batch = iterator.next()
                if not batch:
                    break
                newest = heapq.nlargest(
                    limit, newest + list(batch), key=lambda r: r.get("created_at") or 0
                )
        finally:
            iterator.close()
        return [self._to_row(r) for r in newest]
