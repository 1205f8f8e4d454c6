"""
SQLAlchemy-backed data store for panel resources.

Single access point the association services use to read and write records
of any resource type. Records are addressed by their GUIDs; primary keys
never leave this module except as foreign key values.

Failure mapping:
- Database errors while reading -> DataSourceUnavailableError
- Unique constraint violations on write -> FormValidationError keyed by column
- Other database errors on write -> DataSourceUnavailableError
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from panel.src.resources import ResourceType, Resource, get_resource
from panel.src.services.exceptions import (
    DataSourceUnavailableError,
    FormValidationError,
    NotFoundError,
)
from panel.src.services.guid import GuidService
from panel.src.utils.logging_config import get_logger


logger = get_logger("db")


class SqlAlchemyDataStore:
    """
    Data store over a SQLAlchemy session.

    Usage:
        >>> store = SqlAlchemyDataStore(db_session)
        >>> courses = store.fetch(ResourceType.COURSE, limit=11)
        >>> post = store.insert(ResourceType.POST, {"name": "Test post"})
    """

    def __init__(self, db: Session):
        """
        Initialize data store.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def fetch(
        self,
        target_type: Union[ResourceType, str],
        limit: int,
        offset: int = 0,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[Any]:
        """
        Fetch records of a type in creation order.

        Args:
            target_type: Resource type to read
            limit: Maximum number of rows
            offset: Rows to skip
            exclude_ids: GUIDs to leave out (invalid GUIDs are ignored)

        Returns:
            List of model instances ordered by primary key

        Raises:
            DataSourceUnavailableError: If the query fails
        """
        resource = get_resource(target_type)
        model = resource.model

        query = self.db.query(model)
        excluded = self._parse_guids(resource, exclude_ids)
        if excluded:
            query = query.filter(model.uuid.notin_(excluded))

        query = query.order_by(model.id.asc()).offset(offset).limit(limit)
        return self._run("fetch", resource, query.all)

    def count(self, target_type: Union[ResourceType, str]) -> int:
        """
        Count records of a type.

        Raises:
            DataSourceUnavailableError: If the query fails
        """
        resource = get_resource(target_type)
        return self._run("count", resource, self.db.query(resource.model).count)

    def find_by_id(self, target_type: Union[ResourceType, str], record_id: str) -> Optional[Any]:
        """
        Find a record by GUID.

        Returns:
            Model instance, or None if the GUID is malformed, has another
            type's prefix, or matches nothing

        Raises:
            DataSourceUnavailableError: If the query fails
        """
        resource = get_resource(target_type)
        model = resource.model

        if not GuidService.validate_guid(record_id, model.GUID_PREFIX):
            return None
        uuid_value = model.parse_guid(record_id)

        query = self.db.query(model).filter(model.uuid == uuid_value)
        return self._run("find_by_id", resource, query.first)

    def find_by_pk(self, target_type: Union[ResourceType, str], pk: Optional[int]) -> Optional[Any]:
        """
        Find a record by internal primary key (foreign key values).

        Raises:
            DataSourceUnavailableError: If the query fails
        """
        if pk is None:
            return None
        resource = get_resource(target_type)
        return self._run("find_by_pk", resource, lambda: self.db.get(resource.model, pk))

    def search(
        self,
        target_type: Union[ResourceType, str],
        term: str,
        limit: int,
    ) -> List[Any]:
        """
        Case-insensitive substring search over the resource's search columns.

        Raises:
            DataSourceUnavailableError: If the query fails
        """
        resource = get_resource(target_type)
        model = resource.model

        pattern = f"%{term.strip()}%"
        conditions = [getattr(model, column).ilike(pattern) for column in resource.search_columns]
        query = (
            self.db.query(model)
            .filter(or_(*conditions))
            .order_by(model.id.asc())
            .limit(limit)
        )
        return self._run("search", resource, query.all)

    def insert(self, target_type: Union[ResourceType, str], fields: Dict[str, Any]) -> Any:
        """
        Insert one record and commit.

        Args:
            target_type: Resource type to create
            fields: Model attribute values

        Returns:
            The persisted model instance

        Raises:
            FormValidationError: If a unique constraint is violated
            DataSourceUnavailableError: If the write fails otherwise
        """
        resource = get_resource(target_type)
        record = resource.model(**fields)
        self.db.add(record)
        self._commit("insert", resource)
        self.db.refresh(record)

        logger.info(
            f"Inserted {resource.resource_type.value} {record.guid}",
            extra={"target_type": resource.resource_type.value, "guid": record.guid},
        )
        return record

    def update(self, target_type: Union[ResourceType, str], record_id: str, fields: Dict[str, Any]) -> Any:
        """
        Update an existing record by GUID and commit.

        Raises:
            NotFoundError: If no record has that GUID
            FormValidationError: If a unique constraint is violated
            DataSourceUnavailableError: If the write fails otherwise
        """
        resource = get_resource(target_type)
        record = self.find_by_id(resource.resource_type, record_id)
        if record is None:
            raise NotFoundError(resource.resource_type.display_name, record_id)

        for name, value in fields.items():
            setattr(record, name, value)
        self._commit("update", resource)
        self.db.refresh(record)

        logger.info(
            f"Updated {resource.resource_type.value} {record.guid}",
            extra={"target_type": resource.resource_type.value, "guid": record.guid},
        )
        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(self, operation: str, resource: Resource, call):
        try:
            return call()
        except SQLAlchemyError as e:
            logger.error(
                f"Data store {operation} failed for {resource.resource_type.value}: {e}",
                extra={"operation": operation, "target_type": resource.resource_type.value},
            )
            raise DataSourceUnavailableError(operation, resource.resource_type.value, str(e)) from e

    def _commit(self, operation: str, resource: Resource) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"Integrity error during {operation} of {resource.resource_type.value}: {e.orig}",
                extra={"operation": operation, "target_type": resource.resource_type.value},
            )
            raise FormValidationError(self._integrity_errors(resource, e)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Data store {operation} failed for {resource.resource_type.value}: {e}",
                extra={"operation": operation, "target_type": resource.resource_type.value},
            )
            raise DataSourceUnavailableError(operation, resource.resource_type.value, str(e)) from e

    @staticmethod
    def _integrity_errors(resource: Resource, error: IntegrityError) -> Dict[str, List[str]]:
        """Map a constraint violation onto the unique column it concerns."""
        message = str(error.orig).lower()
        for column in resource.model.__table__.columns:
            if column.unique and column.name != "uuid" and column.name in message:
                return {column.name: ["has already been taken"]}
        return {"base": ["Record could not be saved because it conflicts with existing data"]}

    @staticmethod
    def _parse_guids(resource: Resource, guids: Optional[Iterable[str]]) -> list:
        if not guids:
            return []
        prefix = resource.model.GUID_PREFIX
        return [
            GuidService.parse_guid(guid, prefix)
            for guid in guids
            if GuidService.validate_guid(guid, prefix)
        ]
