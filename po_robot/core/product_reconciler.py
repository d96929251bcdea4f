"""
Reconciliação do código de produto extraído com o mestre de produtos.

O OCR costuma ler caracteres a mais no fim da célula de código; o código
canônico do mestre tem sempre 4 caracteres, então a regra é truncar
(nunca completar com zeros).
"""
import logging
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..schema.models import CANONICAL_CODE_LENGTH, ItemRow, Product

if TYPE_CHECKING:
    from .catalog_loader import ProductCatalog

logger = logging.getLogger(__name__)


def normalize_product_code(original_code: str) -> str:
    if len(original_code) >= CANONICAL_CODE_LENGTH:
        return original_code[:CANONICAL_CODE_LENGTH]
    return original_code


def match_product(original_code: str, catalog: "ProductCatalog") -> Optional[Product]:
    return catalog.find(normalize_product_code(original_code))


def has_discrepancy(original_code: str, matched: Optional[Product]) -> bool:
    """Códigos com menos de 4 caracteres ficam fora da reconciliação."""
    return len(original_code) >= CANONICAL_CODE_LENGTH and matched is None


def reconcile_row(row: ItemRow, catalog: "ProductCatalog") -> ItemRow:
    """Retorna uma nova linha; a original não é alterada."""
    original_code = row.original_code
    normalized_code = normalize_product_code(original_code)
    matched = catalog.find(normalized_code)

    return row.model_copy(update={
        "normalized_code": normalized_code,
        "matched_product": matched,
        "has_discrepancy": has_discrepancy(original_code, matched),
    })


def reconcile_rows(rows: Sequence[ItemRow], catalog: "ProductCatalog") -> List[ItemRow]:
    reconciled = [reconcile_row(row, catalog) for row in rows]

    discrepancies = [row.index for row in reconciled if row.has_discrepancy]
    if discrepancies:
        logger.warning(
            "%d of %d item rows have no product master match (rows: %s)",
            len(discrepancies), len(reconciled), discrepancies
        )
    return reconciled
