from typing import Any, List, Mapping

from ..schema.models import FormField, TableBlock
from .entity_flattener import as_confidence, document_text, text_from_anchor


def layout_text(layout: Any, full_text: str) -> str:
    """textAnchor.content quando presente, senão o texto dos offsets."""
    if not isinstance(layout, Mapping):
        return ""
    anchor = layout.get("textAnchor")
    if not isinstance(anchor, Mapping):
        return ""

    content = anchor.get("content")
    if isinstance(content, str) and content:
        return content
    return text_from_anchor(anchor, full_text)


def _as_list(value: Any) -> List[Any]:
    """Coleção malformada degrada para lista vazia."""
    return value if isinstance(value, list) else []


def _first_page(document: Mapping[str, Any]) -> Mapping[str, Any]:
    pages = document.get("pages") or []
    if isinstance(pages, list) and pages and isinstance(pages[0], Mapping):
        return pages[0]
    return {}


def extract_form_fields(document: Mapping[str, Any]) -> List[FormField]:
    """Campos de formulário (Form Parser) da primeira página."""
    full_text = document_text(document)
    fields = _as_list(_first_page(document).get("formFields"))

    out = []
    for field in fields:
        if not isinstance(field, Mapping):
            continue
        value_layout = field.get("fieldValue") or {}
        out.append(FormField(
            field_name=layout_text(field.get("fieldName"), full_text),
            field_value=layout_text(value_layout, full_text),
            confidence=as_confidence(value_layout.get("confidence") if isinstance(value_layout, Mapping) else None),
        ))
    return out


def _table_rows(rows: Any, full_text: str) -> List[List[str]]:
    out = []
    for row in _as_list(rows):
        if not isinstance(row, Mapping):
            continue
        out.append([
            layout_text(cell.get("layout"), full_text).strip()
            for cell in _as_list(row.get("cells"))
            if isinstance(cell, Mapping)
        ])
    return out


def extract_tables(document: Mapping[str, Any]) -> List[TableBlock]:
    """Tabelas da primeira página, cada célula trimada."""
    full_text = document_text(document)
    tables = _as_list(_first_page(document).get("tables"))

    return [
        TableBlock(
            header_rows=_table_rows(table.get("headerRows"), full_text),
            body_rows=_table_rows(table.get("bodyRows"), full_text),
        )
        for table in tables
        if isinstance(table, Mapping)
    ]
