import hashlib
import logging
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from .core.catalog_loader import ProductCatalog
from .core.csv_exporter import CsvExport, DEFAULT_FILENAME_PREFIX, export_items_csv
from .core.entity_flattener import document_text, flatten_document
from .core.errors import OrderProcessingError
from .core.header_resolver import resolve_profile_header
from .core.item_table import build_item_rows
from .core.layout_extractor import extract_form_fields, extract_tables
from .core.product_reconciler import reconcile_rows
from .core.profiles import ProcessorProfile
from .schema.models import EntityNode, ItemRow, OrderExtractionResult
from .schema.orchestrator_models import OrchestratorEvent, PipelineError, PipelineResult

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Coordenador do pipeline de pedidos.
    Une Flatten -> Resolve -> Reconcile com observabilidade e rastreabilidade.
    NÃO persiste nada: cada invocação é stateless sobre as entradas.
    """

    def __init__(self, profile: ProcessorProfile, catalog: ProductCatalog):
        self.profile = profile
        self.catalog = catalog

    def _calculate_hash(self, data: Union[str, bytes]) -> str:
        """Gera SHA-256 determinístico do conteúdo."""
        if isinstance(data, str):
            content = data.encode('utf-8')
        else:
            content = data
        return hashlib.sha256(content).hexdigest()

    def _failure(self, stage: str, e: Exception) -> OrchestratorEvent:
        return OrchestratorEvent(
            stage=stage,
            status="FAILURE",
            details={"error": str(e), "error_type": type(e).__name__},
            error_policy="ABORT"
        )

    def build_rows(self, entities: Sequence[EntityNode]) -> List[ItemRow]:
        """Linhas resolvidas e reconciliadas a partir de entidades já achatadas."""
        rows = build_item_rows(entities, self.profile.column_keys)
        return reconcile_rows(rows, self.catalog)

    def export_csv(
        self,
        entities: Sequence[EntityNode],
        export_date: Optional[date] = None,
        filename_prefix: str = DEFAULT_FILENAME_PREFIX,
    ) -> CsvExport:
        rows = self.build_rows(entities)
        return export_items_csv(rows, self.profile.item_columns, export_date, filename_prefix)

    def process(self, document: Any, context: Optional[Dict[str, str]] = None) -> PipelineResult:
        """
        Executa o pipeline completo sobre um documento do Document AI.

        Args:
            document: Documento bruto (dict com 'text' e 'entities').
            context: Dicionário com 'trace_id', 'execution_id', 'tenant_id'.
        """
        context = context or {}
        trace_id = context.get("trace_id", "unknown_trace")
        execution_id = context.get("execution_id", "unknown_exec")
        tenant_id = context.get("tenant_id", "unknown_tenant")

        result = PipelineResult(
            trace_id=trace_id,
            execution_id=execution_id,
            tenant_id=tenant_id,
            start_time=datetime.now(),
            status="error", # Pessimista por padrão
            events=[],
            raw_metadata={"processor_type": self.profile.processor_type}
        )

        try:
            # ====================================================
            # 1. FLATTEN STAGE
            # ====================================================
            start_flatten = time.time()
            try:
                entities = flatten_document(document)
                raw_text = document_text(document)
                form_fields = extract_form_fields(document)
                tables = extract_tables(document)

                # Metadados brutos (SEM LOGAR CONTEÚDO)
                result.raw_metadata.update({
                    "text_hash_sha256": self._calculate_hash(raw_text),
                    "text_length": len(raw_text),
                    "entity_count": len(entities),
                })

                result.events.append(OrchestratorEvent(
                    stage="FLATTEN",
                    status="SUCCESS",
                    timestamp=datetime.now(),
                    details={
                        "duration_sec": round(time.time() - start_flatten, 4),
                        "entity_count": len(entities),
                        "form_field_count": len(form_fields),
                        "table_count": len(tables),
                    },
                    error_policy="CONTINUE"
                ))
            except Exception as e:
                # Entrada estruturalmente inválida é fatal (ABORT)
                result.events.append(self._failure("FLATTEN", e))
                raise

            # ====================================================
            # 2. RESOLVE STAGE
            # ====================================================
            start_resolve = time.time()
            try:
                header_fields = resolve_profile_header(entities, self.profile)
                rows = build_item_rows(entities, self.profile.column_keys)

                result.events.append(OrchestratorEvent(
                    stage="RESOLVE",
                    status="SUCCESS",
                    timestamp=datetime.now(),
                    details={
                        "duration_sec": round(time.time() - start_resolve, 4),
                        "header_field_count": len(header_fields),
                        "items_count": len(rows),
                    },
                    error_policy="CONTINUE"
                ))
            except Exception as e:
                result.events.append(self._failure("RESOLVE", e))
                raise

            # ====================================================
            # 3. RECONCILE STAGE
            # ====================================================
            start_reconcile = time.time()
            try:
                items = reconcile_rows(rows, self.catalog)

                payload = OrderExtractionResult(
                    processor_type=self.profile.processor_type,
                    raw_text=raw_text.strip(),
                    entities=entities,
                    header_fields=header_fields,
                    items=items,
                    form_fields=form_fields,
                    tables=tables,
                )

                result.events.append(OrchestratorEvent(
                    stage="RECONCILE",
                    status="SUCCESS",
                    timestamp=datetime.now(),
                    details={
                        "duration_sec": round(time.time() - start_reconcile, 4),
                        "catalog_size": len(self.catalog),
                        "matched_count": sum(1 for item in items if item.matched_product),
                        "discrepancy_count": payload.discrepancy_count,
                    },
                    error_policy="CONTINUE"
                ))
            except Exception as e:
                result.events.append(self._failure("RECONCILE", e))
                raise

            # Pipeline Completo com Sucesso
            result.payload = payload
            result.status = "success"
            result.raw_metadata["items_count"] = len(items)

        except Exception as e:
            # Retorna o result com "error" e o histórico até a falha.
            # O evento de falha já foi adicionado nos blocos try internos
            result.status = "error"
            if isinstance(e, OrderProcessingError):
                result.error = PipelineError(type=type(e).__name__, message=e.message, details=e.details)
            else:
                result.error = PipelineError(type=type(e).__name__, message=str(e))
            logger.error("Pipeline %s failed: %s", execution_id, result.error.message)

        finally:
            result.end_time = datetime.now()

        return result
