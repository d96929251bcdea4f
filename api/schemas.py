"""
Pydantic schemas for API contracts.
Separates the engine payload from the transport layer.
"""
from typing import Optional, Literal, Dict, Any, List, Sequence
from datetime import date, datetime
from pydantic import BaseModel, Field

from po_config import settings
from po_robot.schema.models import (
    EntityNode,
    FormField,
    HeaderField,
    ItemRow,
    Product,
    TableBlock,
)
from po_robot.schema.orchestrator_models import OrchestratorEvent, PipelineResult


class ProcessEntitiesRequest(BaseModel):
    """
    Documento já retornado pelo Document AI (JSON camelCase).
    Mesmo pipeline do upload, sem chamada externa.
    """
    processor_type: str = Field(default=settings.DEFAULT_PROCESSOR_TYPE)
    document: Any = Field(None, description="Raw document AI document with 'text' and 'entities'")


class ExportCsvRequest(BaseModel):
    processor_type: str = Field(default=settings.DEFAULT_PROCESSOR_TYPE)
    entities: List[EntityNode] = Field(default_factory=list, description="Flattened entities as returned by /v1/process")
    export_date: Optional[date] = None


class ItemRowView(BaseModel):
    """
    Linha pronta para renderização: valores por coluna já corrigidos pelo mestre.
    """
    index: int
    values: Dict[str, str]
    raw_values: Dict[str, str]
    confidences: Dict[str, float] = Field(default_factory=dict)
    page: int = 1
    original_code: str
    normalized_code: str
    matched_product: Optional[Product] = None
    has_discrepancy: bool = False

    @classmethod
    def from_row(cls, row: ItemRow, keys: Sequence[str]) -> "ItemRowView":
        return cls(
            index=row.index,
            values=dict(zip(keys, row.corrected_values(list(keys)))),
            raw_values=dict(row.values),
            confidences=dict(row.confidences),
            page=row.page,
            original_code=row.original_code,
            normalized_code=row.normalized_code,
            matched_product=row.matched_product,
            has_discrepancy=row.has_discrepancy,
        )


class ColumnView(BaseModel):
    key: str
    label: str
    align: Literal["left", "right"]


class ProcessResponse(BaseModel):
    """
    Standard API response for process requests.
    """
    execution_id: str
    trace_id: Optional[str] = None
    status: Literal["completed", "failed"]
    processor_type: str
    timestamp: datetime = Field(default_factory=datetime.now)

    text: str = ""
    entities: List[EntityNode] = Field(default_factory=list)
    header_fields: List[HeaderField] = Field(default_factory=list)
    columns: List[ColumnView] = Field(default_factory=list)
    items: List[ItemRowView] = Field(default_factory=list)
    form_fields: List[FormField] = Field(default_factory=list)
    tables: List[TableBlock] = Field(default_factory=list)

    item_count: int = 0
    discrepancy_count: int = 0
    events: List[OrchestratorEvent] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
    checks: Dict[str, bool] = Field(default_factory=dict)


class ProductListResponse(BaseModel):
    products: List[Product]


def build_process_response(result: PipelineResult, columns) -> ProcessResponse:
    """Monta a resposta a partir de um PipelineResult com status success."""
    payload = result.payload
    keys = [col.key for col in columns]

    return ProcessResponse(
        execution_id=result.execution_id,
        trace_id=result.trace_id,
        status="completed",
        processor_type=payload.processor_type,
        text=payload.raw_text,
        entities=payload.entities,
        header_fields=payload.header_fields,
        columns=[ColumnView(key=col.key, label=col.label, align=col.align) for col in columns],
        items=[ItemRowView.from_row(row, keys) for row in payload.items],
        form_fields=payload.form_fields,
        tables=payload.tables,
        item_count=len(payload.items),
        discrepancy_count=payload.discrepancy_count,
        events=result.events,
    )
