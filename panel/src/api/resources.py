"""
Resources API endpoints for belongs-to field lookups.

Provides stateless operations on resource fields:
- Render a belongs-to field with its bounded candidate list
- Remote search for searchable fields
- Create a related record directly from a field

Design:
- Resources are addressed by route name (course_links), fields by relation name
- The lookup list limit comes from AppSettings (PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT)
- Service errors are mapped to HTTP responses by the app's exception handlers
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from panel.src.config.settings import AppSettings, get_settings
from panel.src.db.database import get_db
from panel.src.resources import get_resource_by_route
from panel.src.schemas.association import (
    BelongsToFieldView,
    CandidateListResponse,
    CandidateResponse,
)
from panel.src.schemas.form import CreationSubmitRequest
from panel.src.services.data_store import SqlAlchemyDataStore
from panel.src.services.inline_creation_service import InlineCreationService
from panel.src.services.lookup_service import LookupService
from panel.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/resources",
    tags=["Resources"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_lookup_service(
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_settings),
) -> LookupService:
    """Create LookupService instance with database session and settings."""
    return LookupService(db=db, settings=settings)


def get_inline_creation_service(db: Session = Depends(get_db)) -> InlineCreationService:
    """Create InlineCreationService instance over the database session."""
    return InlineCreationService(SqlAlchemyDataStore(db))


# ============================================================================
# API Endpoints
# ============================================================================


@router.get(
    "/{resource}/fields/{field}/options",
    response_model=BelongsToFieldView,
    summary="Render belongs-to field",
    description="Render a belongs-to field with its candidate list, capped at the lookup list limit",
)
async def get_field_options(
    resource: str,
    field: str,
    target_type: Optional[str] = Query(
        None, description="Chosen type of a polymorphic field (e.g. post)"
    ),
    lookup_service: LookupService = Depends(get_lookup_service),
) -> BelongsToFieldView:
    """
    Render a belongs-to field.

    Path Parameters:
        resource: Resource route name (e.g. course_links)
        field: Relation name (e.g. course)

    Query Parameters:
        target_type: Type for polymorphic fields (omit to get the type select only)

    Returns:
        BelongsToFieldView with placeholder, options (sentinel disabled) and
        create_label when inline creation is offered

    Raises:
        400 Bad Request: If target_type is not allowed for the field
        404 Not Found: If the resource or field doesn't exist
        503 Service Unavailable: If candidates cannot be listed

    Example:
        GET /api/resources/course_links/fields/course/options

        Response (lookup list limit 1, two courses):
        {
          "name": "course",
          "options": [
            {"value": "", "label": "Choose an option", ...},
            {"value": "crs_...", "label": "Algebra", ...},
            {"value": "There are more records available.",
             "label": "There are more records available.", "disabled": true, ...}
          ],
          "create_label": "Create new course",
          ...
        }
    """
    panel_resource = get_resource_by_route(resource)
    view = lookup_service.render_field(panel_resource, field, target_type)

    logger.info(
        f"Rendered field {resource}.{field}",
        extra={"target_type": view.target_type, "option_count": len(view.options)},
    )
    return view


@router.get(
    "/{resource}/fields/{field}/search",
    response_model=CandidateListResponse,
    summary="Search field candidates",
    description="Remote search for searchable belongs-to fields",
)
async def search_field_candidates(
    resource: str,
    field: str,
    q: str = Query(..., min_length=1, description="Search term"),
    target_type: Optional[str] = Query(None, description="Type for polymorphic fields"),
    lookup_service: LookupService = Depends(get_lookup_service),
) -> CandidateListResponse:
    """
    Search candidates for a searchable field.

    Returns:
        CandidateListResponse; the sentinel is appended when more matches exist

    Raises:
        400 Bad Request: If the field is not searchable or the type is invalid
        404 Not Found: If the resource or field doesn't exist
        503 Service Unavailable: If the store cannot be queried

    Example:
        GET /api/resources/fish/fields/user/search?q=jane
    """
    panel_resource = get_resource_by_route(resource)
    candidates = lookup_service.search(panel_resource, field, q, target_type)

    logger.info(
        f"Searched {resource}.{field} for '{q}'",
        extra={"count": len(candidates.records), "has_more": candidates.has_more},
    )
    return CandidateListResponse(
        target_type=candidates.target_type.value,
        candidates=[CandidateResponse.from_candidate(c) for c in candidates.options],
        has_more=candidates.has_more,
    )


@router.post(
    "/{resource}/fields/{field}/records",
    response_model=CandidateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create related record",
    description="Create a record of the field's target type without a form session",
)
async def create_related_record(
    resource: str,
    field: str,
    request: CreationSubmitRequest,
    target_type: Optional[str] = Query(None, description="Type for polymorphic fields"),
    creation_service: InlineCreationService = Depends(get_inline_creation_service),
) -> CandidateResponse:
    """
    Create a related record for a field.

    Raises:
        400 Bad Request: If the type is invalid for the field
        403 Forbidden: If the field doesn't allow creation
        404 Not Found: If the resource or field doesn't exist
        422 Unprocessable Entity: If the fields are invalid (errors keyed by field)

    Example:
        POST /api/resources/comments/fields/commentable/records?target_type=post
        {"fields": {"name": "Test post"}}
    """
    descriptor = get_resource_by_route(resource).get_relation(field)
    record = creation_service.create_related(descriptor, target_type, request.fields)

    logger.info(
        f"Created related {record.target_type.value} for {resource}.{field}",
        extra={"guid": record.id},
    )
    return CandidateResponse.from_candidate(record)
