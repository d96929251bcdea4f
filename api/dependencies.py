"""
FastAPI dependency injection utilities.
Handles upload validation, request context and per-request collaborators.
"""
import uuid
from typing import Annotated, Dict, Optional
from fastapi import Header, UploadFile, HTTPException, status

from po_config import settings
from po_robot.core.catalog_loader import ProductCatalog, load_product_catalog
from po_robot.services.document_ai import DocumentAIClient


async def validate_upload_file(file: UploadFile) -> bytes:
    """
    Validate uploaded purchase order file (PDF or image).

    Args:
        file: Uploaded file from multipart form

    Returns:
        File bytes

    Raises:
        HTTPException: If validation fails
    """
    # Check content type
    if file.content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Invalid content type. Expected: {settings.ALLOWED_CONTENT_TYPES}"
        )

    # Read file
    content = await file.read()

    if not content:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Empty file"
        )

    # Check size
    if len(content) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Max size: {settings.API_MAX_UPLOAD_SIZE_MB}MB"
        )

    # Basic PDF magic number check
    if file.content_type == "application/pdf" and not content.startswith(b'%PDF'):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid PDF file format"
        )

    return content


def get_product_catalog() -> ProductCatalog:
    """Mestre carregado uma vez por requisição, somente leitura."""
    return load_product_catalog(settings.PRODUCTS_FILE)


def get_document_ai_client() -> DocumentAIClient:
    return DocumentAIClient.from_settings(settings)


def request_context(
    x_trace_id: Annotated[Optional[str], Header()] = None,
    x_tenant_id: Annotated[Optional[str], Header()] = None,
) -> Dict[str, str]:
    """Generate trace/execution ids when the caller does not provide them."""
    return {
        "trace_id": x_trace_id or str(uuid.uuid4()),
        "execution_id": f"po_{uuid.uuid4().hex[:12]}",
        "tenant_id": x_tenant_id or "default",
    }
