"""
Bulk import API routes.

Flow for the client:
    1. POST /api/imports/{entity_type}/sessions with the file
    2. PUT  /api/imports/sessions/{id}/mapping until can_import is true
    3. POST /api/imports/sessions/{id}/execute
    4. DELETE /api/imports/sessions/{id} to discard (optional after success)
"""

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse
import structlog

from exceptions import AppError
from models.imports import (
    SKIP,
    EntityType,
    FieldCatalog,
    ImportExecuteResponse,
    ImportSessionResponse,
    MappingUpdateRequest,
    SuggestMappingRequest,
    SuggestMappingResponse,
)
from services import import_session_store
from services.column_mapper_service import get_column_mapper
from services.data_sink import get_data_sink
from services.field_catalog import EXCLUDED_HEADERS, describe_fields, get_catalog
from services.import_executor import ImportExecutor
from services.import_session import ImportSession

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/imports", tags=["Imports"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# CATALOGS / SUGGESTIONS
# ===================

@router.get("/catalogs/{entity_type}", response_model=FieldCatalog)
async def get_field_catalog(entity_type: EntityType):
    """Destination fields for an entity type."""
    try:
        return get_catalog(entity_type)
    except Exception as e:
        return handle_error(e)


@router.post("/suggest-mapping", response_model=SuggestMappingResponse)
async def suggest_mapping(data: SuggestMappingRequest):
    """
    Ask the AI column mapper for a header → column mapping.

    Columns outside `databaseColumns` are returned as skip.

    Raises:
        503: Mapping service unavailable or unusable reply
    """
    try:
        mapper = get_column_mapper()

        if data.entity_type is not None:
            catalog = get_catalog(data.entity_type)
            descriptions = {
                f.machine_name: f.description
                for f in catalog.fields
                if f.machine_name in data.database_columns
            }
            excluded = catalog.excluded_headers
        else:
            descriptions = describe_fields([c for c in data.database_columns if c != SKIP])
            excluded = EXCLUDED_HEADERS

        raw = await mapper.map_columns(data.headers, descriptions, excluded)

        allowed = set(descriptions)
        mapping = {
            header: raw.get(header) if raw.get(header) in allowed else SKIP
            for header in data.headers
        }
        return SuggestMappingResponse(mapping=mapping)

    except Exception as e:
        return handle_error(e)


# ===================
# SESSIONS
# ===================

@router.post("/{entity_type}/sessions", response_model=ImportSessionResponse, status_code=201)
async def create_import_session(entity_type: EntityType, file: UploadFile = File(...)):
    """
    Upload a file, parse it and suggest a mapping.

    Raises:
        422: File could not be parsed
    """
    try:
        content = await file.read()
        session = ImportSession(entity_type)
        await session.load(file.filename or "upload", content)
        session_id = import_session_store.store_session(session)

        logger.info(
            "import_session_created",
            session_id=session_id,
            entity_type=entity_type.value,
            rows=session.table.row_count
        )

        return session.snapshot(session_id)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}", response_model=ImportSessionResponse)
async def get_import_session(session_id: str):
    """Current state of an import session."""
    try:
        session = import_session_store.get_session(session_id)
        return session.snapshot(session_id)
    except Exception as e:
        return handle_error(e)


@router.put("/sessions/{session_id}/mapping", response_model=ImportSessionResponse)
async def update_mapping(session_id: str, data: MappingUpdateRequest):
    """
    Map one header to a field (or 'skip') and re-validate.

    Raises:
        404: Session not found
        409: Session not in a mapping state
        422: Header not in the file
    """
    try:
        session = import_session_store.get_session(session_id)
        session.set_mapping(data.header, data.field)
        return session.snapshot(session_id)
    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/execute", response_model=ImportExecuteResponse)
async def execute_import(session_id: str):
    """
    Insert every valid row.

    Raises:
        409: Session not ready to import
        422: Required field unmapped, or no valid rows
        500: Database rejected the insert (nothing written)
    """
    try:
        session = import_session_store.get_session(session_id)
        executor = ImportExecutor(get_data_sink(), session.notifier)
        outcome = session.run_import(executor)

        return ImportExecuteResponse(
            session_id=session_id,
            state=session.state.value,
            inserted_count=outcome.inserted_count,
            skipped_rows=outcome.skipped_rows,
            summary=session.summary(),
        )

    except Exception as e:
        return handle_error(e)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_import_session(session_id: str):
    """Discard a session."""
    try:
        session = import_session_store.delete_session(session_id)
        if session is not None:
            session.close()
    except Exception as e:
        return handle_error(e)
