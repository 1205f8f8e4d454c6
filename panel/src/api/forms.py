"""
Forms API endpoints for new/edit form sessions.

Provides the interactive form flow:
- Open a form session for a new record or an existing one
- Enter attribute values, choose polymorphic types, select records
- Open, submit and cancel nested "Create new <type>" contexts
- Submit the parent record

Design:
- Sessions are addressed by GUID (frm_xxx), creation contexts by ctx_xxx
- Every response returns the current session state so clients can re-render
- Service errors are mapped to HTTP responses by the app's exception handlers
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from panel.src.config.settings import AppSettings, get_settings
from panel.src.db.database import get_db
from panel.src.resources import get_resource, get_resource_by_route
from panel.src.schemas.association import BelongsToFieldView, CandidateResponse
from panel.src.schemas.form import (
    CreationContextResponse,
    CreationOpenRequest,
    CreationResultResponse,
    CreationSubmitRequest,
    FormSessionCreate,
    FormSessionResponse,
    FormValuesUpdate,
    SelectionUpdate,
    SubmittedRecordResponse,
    TargetTypeUpdate,
)
from panel.src.services.form_session_service import FormSessionService
from panel.src.services.form_state import FormSession
from panel.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/forms",
    tags=["Forms"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_form_session_service(
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_settings),
) -> FormSessionService:
    """Create FormSessionService instance with database session and settings."""
    return FormSessionService(db=db, settings=settings)


def _session_response(session: FormSession) -> FormSessionResponse:
    return FormSessionResponse.from_session(session, get_resource(session.resource_type).route_name)


# ============================================================================
# Session lifecycle
# ============================================================================


@router.post(
    "",
    response_model=FormSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open form",
    description="Open a new-record form, or an edit form when record_id is given",
)
async def open_form(
    request: FormSessionCreate,
    service: FormSessionService = Depends(get_form_session_service),
) -> FormSessionResponse:
    """
    Open a form session.

    Raises:
        404 Not Found: If the resource or edited record doesn't exist

    Example:
        POST /api/forms
        {"resource": "fish", "record_id": "fsh_01hgw2bbg..."}
    """
    resource = get_resource_by_route(request.resource)
    session = service.start(resource.resource_type, request.record_id)
    return _session_response(session)


@router.get(
    "/{guid}",
    response_model=FormSessionResponse,
    summary="Get form",
)
async def get_form(
    guid: str,
    service: FormSessionService = Depends(get_form_session_service),
) -> FormSessionResponse:
    """
    Get the state of a form session.

    Raises:
        404 Not Found: If the session doesn't exist or expired
    """
    return _session_response(service.get(guid))


@router.delete(
    "/{guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard form",
)
async def discard_form(
    guid: str,
    service: FormSessionService = Depends(get_form_session_service),
) -> None:
    """Discard a form session without saving anything."""
    service.discard(guid)


# ============================================================================
# Field interaction
# ============================================================================


@router.patch(
    "/{guid}/values",
    response_model=FormSessionResponse,
    summary="Update values",
    description="Merge attribute values into the form",
)
async def update_values(
    guid: str,
    request: FormValuesUpdate,
    service: FormSessionService = Depends(get_form_session_service),
) -> FormSessionResponse:
    """
    Merge attribute values.

    Raises:
        400 Bad Request: If a value names an unknown attribute
        404 Not Found: If the session doesn't exist

    Example:
        PATCH /api/forms/frm_01hgw2bbg.../values
        {"values": {"body": "Test comment"}}
    """
    session = service.set_values(guid, request.values)
    return _session_response(session)


@router.put(
    "/{guid}/fields/{field}/type",
    response_model=FormSessionResponse,
    summary="Choose target type",
    description="Choose the type of a polymorphic field; a new type clears the selection",
)
async def choose_target_type(
    guid: str,
    field: str,
    request: TargetTypeUpdate,
    service: FormSessionService = Depends(get_form_session_service),
) -> FormSessionResponse:
    """
    Choose a polymorphic field's target type.

    Raises:
        400 Bad Request: If the type is not allowed for the field
        404 Not Found: If the session or field doesn't exist
    """
    service.choose_target_type(guid, field, request.target_type)
    return _session_response(service.get(guid))


@router.put(
    "/{guid}/fields/{field}/selection",
    response_model=FormSessionResponse,
    summary="Select record",
    description="Select an existing record in a field (record_id null clears it)",
)
async def select_record(
    guid: str,
    field: str,
    request: SelectionUpdate,
    service: FormSessionService = Depends(get_form_session_service),
) -> FormSessionResponse:
    """
    Select a record.

    Raises:
        400 Bad Request: If the sentinel is submitted or no type was chosen
        404 Not Found: If the session, field or record doesn't exist
    """
    service.select(guid, field, request.record_id)
    return _session_response(service.get(guid))


@router.get(
    "/{guid}/fields/{field}",
    response_model=BelongsToFieldView,
    summary="Render form field",
    description="Render a belongs-to field of the form with its current selection",
)
async def render_form_field(
    guid: str,
    field: str,
    service: FormSessionService = Depends(get_form_session_service),
) -> BelongsToFieldView:
    """
    Render a form field.

    Raises:
        404 Not Found: If the session or field doesn't exist
        503 Service Unavailable: If candidates cannot be listed
    """
    return service.render_field(guid, field)


# ============================================================================
# Inline creation
# ============================================================================


@router.post(
    "/{guid}/fields/{field}/creations",
    response_model=CreationContextResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open creation",
    description="Open a nested 'Create new <type>' form for a field",
)
async def open_creation(
    guid: str,
    field: str,
    request: CreationOpenRequest,
    service: FormSessionService = Depends(get_form_session_service),
) -> CreationContextResponse:
    """
    Open a creation context.

    Raises:
        400 Bad Request: If the type can't be resolved
        403 Forbidden: If the field doesn't allow creation
        404 Not Found: If the session or field doesn't exist
    """
    context = service.open_creation(guid, field, request.target_type)
    return CreationContextResponse.from_context(context)


@router.post(
    "/{guid}/creations/{context_id}/submit",
    response_model=CreationResultResponse,
    summary="Submit creation",
    description="Create the record and select it in the parent form",
)
async def submit_creation(
    guid: str,
    context_id: str,
    request: CreationSubmitRequest,
    service: FormSessionService = Depends(get_form_session_service),
) -> CreationResultResponse:
    """
    Submit a creation context.

    Re-submitting a committed context returns the same record.

    Raises:
        404 Not Found: If the session or context doesn't exist
        409 Conflict: If the context was cancelled
        422 Unprocessable Entity: If the fields are invalid (context stays open)

    Example:
        POST /api/forms/frm_.../creations/ctx_.../submit
        {"fields": {"name": "Test post"}}
    """
    record = service.submit_creation(guid, context_id, request.fields)

    logger.info(
        f"Inline creation {context_id} selected {record.id}",
        extra={"session_id": guid, "guid": record.id},
    )
    return CreationResultResponse(
        record=CandidateResponse.from_candidate(record),
        form=_session_response(service.get(guid)),
    )


@router.delete(
    "/{guid}/creations/{context_id}",
    response_model=CreationContextResponse,
    summary="Cancel creation",
)
async def cancel_creation(
    guid: str,
    context_id: str,
    service: FormSessionService = Depends(get_form_session_service),
) -> CreationContextResponse:
    """
    Cancel a creation context.

    Raises:
        404 Not Found: If the session or context doesn't exist
    """
    context = service.cancel_creation(guid, context_id)
    return CreationContextResponse.from_context(context)


# ============================================================================
# Submit
# ============================================================================


@router.post(
    "/{guid}/submit",
    response_model=SubmittedRecordResponse,
    summary="Submit form",
    description="Create or update the parent record and close the form",
)
async def submit_form(
    guid: str,
    service: FormSessionService = Depends(get_form_session_service),
) -> SubmittedRecordResponse:
    """
    Submit the parent form.

    Raises:
        400 Bad Request: If a polymorphic selection has an invalid type
        404 Not Found: If the session or edited record doesn't exist
        422 Unprocessable Entity: If values or selections are invalid
    """
    session = service.get(guid)
    resource = get_resource(session.resource_type)
    record, created = service.submit(guid)

    return SubmittedRecordResponse(
        id=record.guid,
        resource=resource.route_name,
        label=resource.label_for(record),
        created=created,
    )
