"""
Candidate list builder for belongs-to selects.

Lists the records a relation can point at, capped at the lookup list limit.
When more records exist than the limit allows, the list ends with a
non-selectable sentinel telling the user there are more records.

Design:
- The limit is passed in on every call, never read from global state
- One extra row is fetched to detect truncation without a COUNT query
- Order is creation order (primary key ascending), so results are
  deterministic for a fixed limit and fixed data
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union

from panel.src.resources import Resource, ResourceType, get_resource
from panel.src.utils.logging_config import get_logger


logger = get_logger("services")


MORE_RECORDS_LABEL = "There are more records available."


@dataclass(frozen=True)
class CandidateRecord:
    """
    A record offered in a belongs-to select.

    Attributes:
        id: Record GUID (the sentinel uses its label instead)
        label: Display label
        target_type: Resource type of the record
        selectable: False only for the sentinel
    """

    id: str
    label: str
    target_type: Optional[ResourceType] = None
    selectable: bool = True

    @classmethod
    def from_record(cls, resource: Resource, record: Any) -> "CandidateRecord":
        return cls(
            id=record.guid,
            label=resource.label_for(record),
            target_type=resource.resource_type,
        )


MORE_RECORDS_SENTINEL = CandidateRecord(
    id=MORE_RECORDS_LABEL,
    label=MORE_RECORDS_LABEL,
    selectable=False,
)


def is_sentinel(record_id: Optional[str]) -> bool:
    """Whether an id is the "more records" sentinel value."""
    return record_id == MORE_RECORDS_SENTINEL.id


@dataclass(frozen=True)
class CandidateSet:
    """
    Bounded list of candidates for one target type.

    Attributes:
        target_type: Resource type listed
        records: Real records, at most ``limit`` of them
        has_more: True when records beyond the limit exist
        limit: Lookup list limit the set was built with
    """

    target_type: ResourceType
    records: Tuple[CandidateRecord, ...]
    has_more: bool
    limit: int

    @property
    def options(self) -> Tuple[CandidateRecord, ...]:
        """Records followed by the sentinel when the list was truncated."""
        if self.has_more:
            return self.records + (MORE_RECORDS_SENTINEL,)
        return self.records

    def contains(self, record_id: str) -> bool:
        return any(record.id == record_id for record in self.records)


class CandidateListBuilder:
    """
    Builds bounded candidate lists from a data store.

    Usage:
        >>> builder = CandidateListBuilder(SqlAlchemyDataStore(db))
        >>> candidates = builder.list_candidates(ResourceType.COURSE, lookup_list_limit=1)
        >>> [c.label for c in candidates.options]
        ['Algebra', 'There are more records available.']
    """

    def __init__(self, data_store):
        """
        Initialize candidate list builder.

        Args:
            data_store: Store providing fetch() and search()
        """
        self.data_store = data_store

    def list_candidates(
        self,
        target_type: Union[ResourceType, str],
        lookup_list_limit: int,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> CandidateSet:
        """
        List candidates of a type, truncated to the lookup list limit.

        Args:
            target_type: Resource type to list
            lookup_list_limit: Maximum number of real records (>= 1)
            exclude_ids: GUIDs to leave out

        Returns:
            CandidateSet with at most ``lookup_list_limit`` records

        Raises:
            ValueError: If lookup_list_limit < 1
            DataSourceUnavailableError: If the store cannot be queried
        """
        self._check_limit(lookup_list_limit)
        resource = get_resource(target_type)

        rows = self.data_store.fetch(
            resource.resource_type,
            limit=lookup_list_limit + 1,
            offset=0,
            exclude_ids=list(exclude_ids) if exclude_ids else None,
        )
        candidates = self._build(resource, rows, lookup_list_limit)

        logger.debug(
            f"Listed {len(candidates.records)} {resource.resource_type.value} candidates",
            extra={
                "target_type": resource.resource_type.value,
                "limit": lookup_list_limit,
                "has_more": candidates.has_more,
            },
        )
        return candidates

    def search_candidates(
        self,
        target_type: Union[ResourceType, str],
        term: str,
        lookup_list_limit: int,
    ) -> CandidateSet:
        """
        Search candidates of a type, truncated like list_candidates().

        Raises:
            ValueError: If lookup_list_limit < 1
            DataSourceUnavailableError: If the store cannot be queried
        """
        self._check_limit(lookup_list_limit)
        resource = get_resource(target_type)

        rows = self.data_store.search(resource.resource_type, term, limit=lookup_list_limit + 1)
        return self._build(resource, rows, lookup_list_limit)

    @staticmethod
    def _check_limit(lookup_list_limit: int) -> None:
        if lookup_list_limit < 1:
            raise ValueError(f"lookup_list_limit must be at least 1, got {lookup_list_limit}")

    @staticmethod
    def _build(resource: Resource, rows, limit: int) -> CandidateSet:
        has_more = len(rows) > limit
        records = tuple(CandidateRecord.from_record(resource, row) for row in rows[:limit])
        return CandidateSet(
            target_type=resource.resource_type,
            records=records,
            has_more=has_more,
            limit=limit,
        )
