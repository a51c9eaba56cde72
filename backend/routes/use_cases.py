"""
Use-case routes: CRUD over stored forms and DOCX generation.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from typing import List
import logging

from config import MAX_CONTENT_CHARS
from models import GenerateDocxRequest, UseCaseForm, UseCaseRecord, UseCaseUpdate
from services.doc_service import DocumentSerializationError, generate_use_case_docx
from services.spell_checker import correct_form_accents
from services.text_utils import sanitize_file_name, sanitize_text, validate_content_size
from services.use_case_store import UseCaseNotFound, UseCaseStore, get_store

logger = logging.getLogger(__name__)
use_cases_router = APIRouter(prefix="/api", tags=["Use Cases"])

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_FREE_TEXT_FIELDS = (
    "description", "business_rules", "special_requirements", "preconditions", "postconditions",
    "request_format", "response_format", "test_case_preconditions",
)

# Identification and narrative fields cleaned of markup before storage or rendering
_SANITIZED_FIELDS = {
    "client_name": 500,
    "project_name": 500,
    "use_case_name": 500,
    "use_case_code": 50,
    "description": 1000,
    "business_rules": 2000,
    "test_case_objective": 500,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _check_sizes(form: UseCaseForm):
    try:
        for name in _FREE_TEXT_FIELDS:
            validate_content_size(getattr(form, name), MAX_CONTENT_CHARS)
    except ValueError as e:
        raise HTTPException(status_code=413, detail=str(e))


def _clean_form(form: UseCaseForm) -> UseCaseForm:
    """Sanitize free-text fields, then restore Spanish accents."""
    changes = {}
    for name, max_length in _SANITIZED_FIELDS.items():
        value = getattr(form, name)
        if value is None:
            continue
        cleaned = sanitize_text(value, max_length)
        if not cleaned and UseCaseForm.model_fields[name].is_required():
            raise HTTPException(status_code=422, detail=f"{name} has no usable text after sanitization")
        changes[name] = cleaned
    return correct_form_accents(form.model_copy(update=changes))


def _docx_response(form: UseCaseForm, file_name: str) -> StreamingResponse:
    try:
        safe_name = sanitize_file_name(file_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        buffer = generate_use_case_docx(_clean_form(form))
    except DocumentSerializationError as e:
        logger.error(f"DOCX generation failed for {safe_name}: {e}")
        raise HTTPException(status_code=500, detail="Error al generar el documento")

    return StreamingResponse(
        buffer,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={safe_name}.docx"},
    )


async def _get_or_404(store: UseCaseStore, use_case_id: str) -> UseCaseRecord:
    try:
        return await store.get(use_case_id)
    except UseCaseNotFound:
        raise HTTPException(status_code=404, detail="Use case not found")


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@use_cases_router.post("/use-cases", response_model=UseCaseRecord, status_code=201)
async def create_use_case(form: UseCaseForm, store: UseCaseStore = Depends(get_store)):
    """Validate and store a use-case form."""
    _check_sizes(form)
    return await store.create(_clean_form(form))


@use_cases_router.get("/use-cases", response_model=List[UseCaseRecord])
async def list_use_cases(store: UseCaseStore = Depends(get_store)):
    return await store.list()


@use_cases_router.get("/use-cases/{use_case_id}", response_model=UseCaseRecord)
async def get_use_case(use_case_id: str, store: UseCaseStore = Depends(get_store)):
    return await _get_or_404(store, use_case_id)


@use_cases_router.patch("/use-cases/{use_case_id}", response_model=UseCaseRecord)
async def update_use_case(use_case_id: str, update: UseCaseUpdate, store: UseCaseStore = Depends(get_store)):
    """Apply a partial update; the merged form is validated again."""
    try:
        record = await store.update(use_case_id, update.changes, update.generated_content)
    except UseCaseNotFound:
        raise HTTPException(status_code=404, detail="Use case not found")
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )
    _check_sizes(record.form)
    return record


@use_cases_router.delete("/use-cases/{use_case_id}")
async def delete_use_case(use_case_id: str, store: UseCaseStore = Depends(get_store)):
    try:
        await store.delete(use_case_id)
    except UseCaseNotFound:
        raise HTTPException(status_code=404, detail="Use case not found")
    return {"success": True}


# ---------------------------------------------------------------------------
# DOCX generation
# ---------------------------------------------------------------------------

@use_cases_router.post("/documents/docx")
async def generate_docx(request: GenerateDocxRequest):
    """Generate the use-case document directly from form data."""
    form = request.form_data
    _check_sizes(form)
    return _docx_response(form, request.file_name or form.file_name)


@use_cases_router.get("/use-cases/{use_case_id}/docx")
async def download_use_case_docx(use_case_id: str, store: UseCaseStore = Depends(get_store)):
    """Regenerate the document of a stored use case."""
    record = await _get_or_404(store, use_case_id)
    return _docx_response(record.form, record.form.file_name)
