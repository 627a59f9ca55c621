# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB persistence for children.

Documents use the camelCase field aliases of the models and carry a
``revision`` counter; updates are conditional on the revision the child was
loaded at.
"""

import os
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Union
from pymongo import MongoClient, ASCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError
from bson import ObjectId
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ..errors import ConflictException, NotFoundException
from ..models.entities import Child
from ..models.enums import ChildStatus
from .filters import ChildFilters, ChildPage

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CHILDREN_COLLECTION = "children"

CHILDREN_INDEXES = (
    ([("organizationId", ASCENDING), ("status", ASCENDING)], {}),
    ([("organizationId", ASCENDING), ("jurisdiction", ASCENDING)], {}),
    ("nhsNumber", {"unique": True, "partialFilterExpression": {"nhsNumber": {"$type": "string"}}}),
    ([("localAuthority", ASCENDING), ("localAuthorityId", ASCENDING)], {}),
    ([("status", ASCENDING), ("nextLacReviewDate", ASCENDING)], {}),
)


@dataclass
class PoolSettings:
    """Client connection pool settings."""
    max_pool_size: int = 10
    min_pool_size: int = 1
    max_idle_time_ms: int = 30000
    server_selection_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> "PoolSettings":
        return cls(
            max_pool_size=int(os.getenv('MONGODB_MAX_POOL_SIZE', '10')),
            min_pool_size=int(os.getenv('MONGODB_MIN_POOL_SIZE', '1')),
            max_idle_time_ms=int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000')),
            server_selection_timeout_ms=int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))
        )


class MongoDBService:
    """Lazily connected MongoDB client and database handle."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        database_name: Optional[str] = None,
        pool: Optional[PoolSettings] = None
    ):
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI', 'mongodb://localhost:27017/lac_registry'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'lac_registry')
        self.pool = pool or PoolSettings.from_env()
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

    @property
    def client(self) -> MongoClient:
        """Client, connected and pinged on first use."""
        if self._client is None:
            client = MongoClient(
                self.connection_string,
                maxPoolSize=self.pool.max_pool_size,
                minPoolSize=self.pool.min_pool_size,
                maxIdleTimeMS=self.pool.max_idle_time_ms,
                serverSelectionTimeoutMS=self.pool.server_selection_timeout_ms,
                retryWrites=True,
                retryReads=True
            )
            try:
                client.admin.command('ping')
            except ConnectionFailure as e:
                client.close()
                logger.error(
                    f"Cannot connect to MongoDB: {e}",
                    extra={"extra_fields": {"database": self.database_name}}
                )
                raise
            logger.info(f"Connected to MongoDB database {self.database_name}")
            self._client = client
        return self._client

    @property
    def database(self) -> Database:
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        return self.database[collection_name]

    def close_connection(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info(f"Closed MongoDB connection to {self.database_name}")
        self._client = None
        self._database = None

    def health_check(self) -> Dict[str, Any]:
        """Ping the server and report its version."""
        try:
            ping = self.client.admin.command('ping')
            version = self.client.server_info().get('version')
        except PyMongoError as e:
            logger.warning(f"MongoDB health check failed: {e}")
            return {'status': 'unhealthy', 'database': self.database_name, 'error': str(e)}

        return {
            'status': 'healthy',
            'ping': ping.get('ok') == 1,
            'version': version,
            'database': self.database_name,
            'max_pool_size': self.pool.max_pool_size
        }

    def create_indexes(self) -> None:
        """Create the children collection indexes; existing ones are left as they are."""
        children = self.get_collection(CHILDREN_COLLECTION)
        for keys, options in CHILDREN_INDEXES:
            children.create_index(keys, **options)
        logger.info(
            f"Ensured {len(CHILDREN_INDEXES)} indexes on {CHILDREN_COLLECTION}",
            extra={"extra_fields": {"database": self.database_name}}
        )


def _document_id(child_id: str) -> Union[ObjectId, str]:
    """Store ObjectId-shaped ids as ObjectId, anything else verbatim."""
    return ObjectId(child_id) if ObjectId.is_valid(child_id) else child_id


def child_to_document(child: Child) -> Dict[str, Any]:
    """Convert a child to a camelCase MongoDB document."""
    document = child.model_dump(by_alias=True, mode="json")
    document["_id"] = _document_id(document.pop("id"))
    return document


def document_to_child(document: Dict[str, Any]) -> Child:
    """Convert a MongoDB document back to a child."""
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    return Child.model_validate(data)


class MongoChildRepository:
    """
    Child repository on a MongoDB collection.

    Every document carries a revision; updates only match the revision the
    child was loaded at, so concurrent writers cannot overwrite each other.
    """

    def __init__(self, mongodb_service: MongoDBService, collection_name: str = CHILDREN_COLLECTION):
        self.mongodb_service = mongodb_service
        self.collection_name = collection_name

    @property
    def collection(self) -> Collection:
        return self.mongodb_service.get_collection(self.collection_name)

    def load(self, child_id: str) -> Child:
        """
        Load a child by ID.

        Raises:
            NotFoundException: If no document has the ID
        """
        with tracer.start_as_current_span("mongodb.children.load") as span:
            span.set_attribute("child.id", child_id)

            document = self.collection.find_one({"_id": _document_id(child_id)})
            if document is None:
                logger.debug(f"Child {child_id} not found in {self.collection_name}")
                raise NotFoundException(f"Child not found: {child_id}")

            return document_to_child(document)

    def save(self, child: Child) -> Child:
        """
        Insert or replace a child, checking its revision.

        Args:
            child: Child carrying the revision it was loaded at

        Returns:
            Child with the revision advanced

        Raises:
            ConflictException: On a stale revision or a duplicate identifier
        """
        expected_revision = child.revision
        saved = child.model_copy(update={"revision": expected_revision + 1})
        document = child_to_document(saved)

        with tracer.start_as_current_span("mongodb.children.save") as span:
            span.set_attributes({
                "child.id": child.id,
                "child.revision": expected_revision,
                "db.collection": self.collection_name
            })

            try:
                if expected_revision == 0:
                    self.collection.insert_one(document)
                else:
                    result = self.collection.replace_one(
                        {"_id": document["_id"], "revision": expected_revision},
                        document
                    )
                    if result.matched_count == 0:
                        span.set_status(Status(StatusCode.ERROR, "revision conflict"))
                        logger.warning(
                            f"Revision conflict saving child {child.id}",
                            extra={"extra_fields": {
                                "child_id": child.id,
                                "expected_revision": expected_revision
                            }}
                        )
                        raise ConflictException(
                            f"Child {child.id} was modified concurrently "
                            f"(expected revision {expected_revision})"
                        )
            except DuplicateKeyError as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                logger.error(f"Duplicate key error in {self.collection_name}: {e}")
                raise ConflictException(f"Child {child.id} duplicates an existing identifier")

            logger.info(f"Saved child {child.id} at revision {saved.revision}")
            return saved

    def find_duplicate(
        self,
        nhs_number: Optional[str],
        local_authority: Optional[str],
        local_authority_id: Optional[str]
    ) -> Optional[Child]:
        """Find a child with the same NHS number or local authority reference."""
        conditions = []
        if nhs_number:
            conditions.append({"nhsNumber": nhs_number})
        if local_authority and local_authority_id:
            conditions.append({
                "localAuthority": local_authority,
                "localAuthorityId": local_authority_id
            })

        if not conditions:
            return None

        document = self.collection.find_one({"$or": conditions})
        return document_to_child(document) if document else None

    def find_by_nhs_number(self, nhs_number: str) -> Optional[Child]:
        document = self.collection.find_one({"nhsNumber": nhs_number})
        return document_to_child(document) if document else None

    def find_by_local_authority_id(self, local_authority: str, local_authority_id: str) -> Optional[Child]:
        document = self.collection.find_one({
            "localAuthority": local_authority,
            "localAuthorityId": local_authority_id
        })
        return document_to_child(document) if document else None

    def list_by_organization(
        self,
        organization_id: str,
        status: Optional[ChildStatus] = None
    ) -> List[Child]:
        """List an organization's children, optionally filtered by status."""
        query = {"organizationId": organization_id}
        if status is not None:
            query["status"] = ChildStatus(status).value

        documents = list(self.collection.find(query))
        logger.debug(f"Found {len(documents)} children for org {organization_id}")
        return [document_to_child(document) for document in documents]

    def search(self, organization_id: str, filters: ChildFilters, today: date) -> ChildPage:
        """
        Page through an organization's children matching the filters.

        Args:
            organization_id: Organization whose caseload is searched
            filters: Filters, sort order and page
            today: Day ages are calculated on

        Returns:
            ChildPage with the total number of matches
        """
        with tracer.start_as_current_span("mongodb.children.search") as span:
            span.set_attributes({
                "organization.id": organization_id,
                "db.collection": self.collection_name,
                "search.page": filters.page,
                "search.limit": filters.limit
            })

            query = filters.to_mongo_query(organization_id, today)
            total = self.collection.count_documents(query)
            cursor = (
                self.collection.find(query)
                .sort(filters.mongo_sort())
                .skip(filters.skip)
                .limit(filters.limit)
            )
            children = [document_to_child(document) for document in cursor]

            span.set_attribute("search.total", total)
            logger.debug(
                f"Child search matched {total} children for org {organization_id}",
                extra={"extra_fields": {"page": filters.page, "returned": len(children)}}
            )
            return ChildPage(children=children, total=total, page=filters.page, limit=filters.limit)


_mongodb_service: Optional[MongoDBService] = None


def get_mongodb_service() -> MongoDBService:
    """Process-wide MongoDB service configured from the environment."""
    global _mongodb_service
    if _mongodb_service is None:
        _mongodb_service = MongoDBService()
    return _mongodb_service
