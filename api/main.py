"""
FastAPI application entry point.
Handles purchase order ingestion with strict separation of concerns:
- API validates input and dispatches
- Document AI adapter is the only external call
- Orchestrator makes all business decisions
- No persistence at any layer
"""
import logging
from pathlib import Path
from typing import Annotated, Dict
from urllib.parse import quote

from fastapi import FastAPI, UploadFile, File, Form, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from po_config import settings
from po_robot.core.catalog_loader import ProductCatalog
from po_robot.core.errors import (
    CatalogLoadError,
    DocumentAIError,
    ExportError,
    MalformedInputError,
    NoDocumentError,
    OrderProcessingError,
    UnknownProcessorError,
)
from po_robot.core.profiles import get_profile
from po_robot.orchestrator import Orchestrator
from po_robot.services.document_ai import DocumentAIClient
from api.schemas import (
    ErrorResponse,
    ExportCsvRequest,
    HealthResponse,
    ProcessEntitiesRequest,
    ProcessResponse,
    ProductListResponse,
    build_process_response,
)
from api.dependencies import (
    get_document_ai_client,
    get_product_catalog,
    request_context,
    validate_upload_file,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    MalformedInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnknownProcessorError: status.HTTP_400_BAD_REQUEST,
    NoDocumentError: status.HTTP_502_BAD_GATEWAY,
    DocumentAIError: status.HTTP_502_BAD_GATEWAY,
    CatalogLoadError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ExportError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Purchase order entity flattening, product reconciliation and CSV export",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


def _run_pipeline(document, processor_type: str, catalog: ProductCatalog, context: Dict[str, str]):
    profile = get_profile(processor_type)
    result = Orchestrator(profile, catalog).process(document, context)

    if result.status != "success":
        # Nunca retorna lista parcial de entidades
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                error=result.error.message,
                details=result.error.details,
            ).model_dump()
        )

    logger.info(
        "Execution %s completed: %d items, %d discrepancies",
        result.execution_id, len(result.payload.items), result.payload.discrepancy_count
    )
    return build_process_response(result, profile.item_columns)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status and basic diagnostics.
    """
    checks = {
        "api": True,
        "document_ai_configured": settings.document_ai_configured,
        "product_master": Path(settings.PRODUCTS_FILE).is_file(),
    }
    return HealthResponse(
        status="healthy" if all(checks.values()) else "degraded",
        version=settings.APP_VERSION,
        checks=checks
    )


@app.get("/api/products", response_model=ProductListResponse, tags=["Products"])
def list_products(catalog: Annotated[ProductCatalog, Depends(get_product_catalog)]):
    """Product master used for product code reconciliation."""
    return ProductListResponse(products=catalog.products)


@app.post("/v1/process/document", response_model=ProcessResponse, tags=["Processing"])
async def process_document(
    file: Annotated[UploadFile, File(description="Purchase order (PDF or image)")],
    client: Annotated[DocumentAIClient, Depends(get_document_ai_client)],
    catalog: Annotated[ProductCatalog, Depends(get_product_catalog)],
    context: Annotated[Dict[str, str], Depends(request_context)],
    processor_type: Annotated[str, Form()] = settings.DEFAULT_PROCESSOR_TYPE,
):
    """
    Process a purchase order document.

    **Request Format (multipart/form-data):**
    - `file`: PDF or image (max 10MB)
    - `processor_type`: `sannote` or `yac`

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/v1/process/document \\
      -F "file=@order.pdf" \\
      -F "processor_type=sannote"
    ```
    """
    # Valida o tipo antes de chamar o serviço externo
    get_profile(processor_type)

    content = await validate_upload_file(file)
    # Chamada gRPC síncrona: roda fora do event loop
    document = await run_in_threadpool(client.process_document, content, file.content_type, processor_type)

    return _run_pipeline(document, processor_type, catalog, context)


@app.post("/v1/process/entities", response_model=ProcessResponse, tags=["Processing"])
def process_entities(
    request: ProcessEntitiesRequest,
    catalog: Annotated[ProductCatalog, Depends(get_product_catalog)],
    context: Annotated[Dict[str, str], Depends(request_context)],
):
    """Run the pipeline over a document AI response obtained elsewhere."""
    return _run_pipeline(request.document, request.processor_type, catalog, context)


@app.post("/v1/export/csv", tags=["Export"])
def export_csv(
    request: ExportCsvRequest,
    catalog: Annotated[ProductCatalog, Depends(get_product_catalog)],
):
    """
    Export reconciled item rows as CSV (UTF-8 with BOM).
    Header-only output when there are no items.
    """
    profile = get_profile(request.processor_type)
    export = Orchestrator(profile, catalog).export_csv(
        request.entities,
        export_date=request.export_date,
        filename_prefix=settings.CSV_FILENAME_PREFIX,
    )

    ascii_name = "items_" + export.filename.rsplit("_", 1)[-1]
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(export.filename)}"
    return Response(
        content=export.payload,
        media_type=export.content_type,
        headers={"Content-Disposition": disposition},
    )


@app.exception_handler(OrderProcessingError)
async def order_processing_exception_handler(request, exc: OrderProcessingError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.error("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.message, details=exc.details).model_dump()
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Global exception handler for unexpected errors.
    """
    logger.exception("Unexpected error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": str(exc) if settings.DEBUG else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG
    )
