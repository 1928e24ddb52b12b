"""Document metadata. File bytes live in object storage, keyed by file_key."""
from typing import Any

from ppm.core.exceptions import ValidationError
from ppm.models.financials import Document
from ppm.models.portfolio import Program
from ppm.models.project import Project
from ppm.services.helpers import tenant_store as store
from ppm.utils.helpers import pick_fields, require_text

DOCUMENT_FIELDS = ("project_id", "program_id", "name", "file_key", "mime_type", "size_bytes")


def list_documents(*, organization_id: int, project_id: int | None = None,
                   program_id: int | None = None) -> list[Document]:
    filters = {}
    if project_id is not None:
        filters["project_id"] = project_id
    if program_id is not None:
        filters["program_id"] = program_id
    return store.find_many(Document, organization_id, order_by=("-created_at", "-id"), **filters)


def create_document(data: dict[str, Any], *, organization_id: int,
                    uploaded_by_id: int | None = None) -> Document:
    patch = pick_fields(data, DOCUMENT_FIELDS)
    patch["name"] = require_text(data, "name", max_len=300)
    patch["file_key"] = require_text(data, "file_key", max_len=500)
    if patch.get("project_id") is None and patch.get("program_id") is None:
        raise ValidationError(
            "A document must belong to a project or a program",
            details={"project_id": "required without program_id"},
        )
    if patch.get("project_id") is not None:
        store.find_one(Project, organization_id, id=patch["project_id"])
    if patch.get("program_id") is not None:
        store.find_one(Program, organization_id, id=patch["program_id"])
    return store.create(Document, organization_id, uploaded_by_id=uploaded_by_id, **patch)


def remove_document(document_id: int, *, organization_id: int) -> Document:
    store.find_one(Document, organization_id, id=document_id)
    return store.delete(Document, organization_id, document_id)
