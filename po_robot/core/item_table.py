from typing import Iterable, List, Sequence

from ..schema.models import EntityNode, ItemRow, PLACEHOLDER
from .product_reconciler import normalize_product_code

ITEM_TYPE = "item"


def property_display_value(item: EntityNode, key: str) -> str:
    """
    value -> normalizedValue -> "-"
    Duplicatas do mesmo type: vale a primeira na ordem de origem.
    """
    prop = item.find_property(key)
    if prop is None:
        return PLACEHOLDER
    return prop.display_value


def build_item_row(index: int, item: EntityNode, column_keys: Iterable[str]) -> ItemRow:
    values = {}
    confidences = {}
    for key in column_keys:
        values[key] = property_display_value(item, key)
        prop = item.find_property(key)
        confidences[key] = prop.confidence if prop is not None else 0.0

    code = property_display_value(item, "product_code")
    return ItemRow(
        index=index,
        values=values,
        confidences=confidences,
        page=item.page,
        original_code=code,
        normalized_code=normalize_product_code(code),
    )


def build_item_rows(entities: Sequence[EntityNode], column_keys: Iterable[str]) -> List[ItemRow]:
    """Uma linha por entidade 'item' de topo, preservando a ordem do pedido."""
    keys = tuple(column_keys)
    items = [e for e in entities if e.type == ITEM_TYPE]
    return [build_item_row(index, item, keys) for index, item in enumerate(items)]
