from typing import Any, Dict, List, Mapping

from ..schema.models import EntityNode
from .errors import MalformedInputError


def _as_int(value: Any, default: int = 0) -> int:
    """Offsets chegam como int ou string (int64 no JSON do protobuf)."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if confidence != confidence:  # NaN
        return 0.0
    return min(max(confidence, 0.0), 1.0)


def text_from_anchor(anchor: Any, full_text: str) -> str:
    """
    Recupera o texto de um textAnchor a partir dos offsets.
    Segmentos são concatenados sem separador e o resultado é trimado.
    """
    if not isinstance(anchor, Mapping):
        return ""

    segments = anchor.get("textSegments") or []
    if not isinstance(segments, list):
        return ""

    parts = []
    for segment in segments:
        if not isinstance(segment, Mapping):
            continue
        start = max(_as_int(segment.get("startIndex")), 0)
        end = max(_as_int(segment.get("endIndex")), 0)
        parts.append(full_text[start:end])

    return "".join(parts).strip()


def resolve_value(raw: Mapping[str, Any], full_text: str) -> str:
    """
    1. mentionText direto, se não vazio
    2. senão, texto recuperado pelos offsets do textAnchor
    3. senão, string vazia
    """
    mention = raw.get("mentionText")
    if isinstance(mention, str) and mention:
        return mention

    if raw.get("textAnchor") is not None:
        return text_from_anchor(raw.get("textAnchor"), full_text)

    return ""


def _normalized_text(raw: Mapping[str, Any]) -> str:
    normalized = raw.get("normalizedValue")
    if isinstance(normalized, Mapping):
        text = normalized.get("text")
        return text if isinstance(text, str) else ""
    if isinstance(normalized, str):
        return normalized
    return ""


def _page_number(raw: Mapping[str, Any]) -> int:
    """Página 1-based a partir do primeiro pageRef (0-based na origem)."""
    anchor = raw.get("pageAnchor")
    if not isinstance(anchor, Mapping):
        return 1

    refs = anchor.get("pageRefs") or []
    if not isinstance(refs, list) or not refs or not isinstance(refs[0], Mapping):
        return 1

    return max(_as_int(refs[0].get("page")), 0) + 1


def flatten_entity(raw: Any, full_text: str = "") -> EntityNode:
    """
    Converte uma entidade bruta do Document AI em EntityNode.
    Filhos são achatados recursivamente, depth-first, na ordem de origem.
    """
    if not isinstance(raw, Mapping):
        raise MalformedInputError(
            "Entity is not a record",
            details=f"Expected a mapping, got {type(raw).__name__}",
        )

    entity_type = raw.get("type")
    children = raw.get("properties") or []
    if not isinstance(children, list):
        children = []

    return EntityNode(
        type=entity_type if isinstance(entity_type, str) else "",
        value=resolve_value(raw, full_text),
        confidence=as_confidence(raw.get("confidence")),
        normalized_value=_normalized_text(raw),
        page=_page_number(raw),
        properties=[flatten_entity(child, full_text) for child in children],
    )


def flatten_document(document: Any) -> List[EntityNode]:
    """
    Achata todas as entidades de topo de um documento.
    Falha estrutural aborta tudo: nunca retorna lista parcial.
    """
    if not isinstance(document, Mapping):
        raise MalformedInputError(
            "Document is not a record",
            details="The document AI response did not contain a document object"
            if document is None
            else f"Expected a mapping, got {type(document).__name__}",
        )

    full_text = document_text(document)

    entities = document.get("entities") or []
    if not isinstance(entities, list):
        entities = []

    return [flatten_entity(raw, full_text) for raw in entities]


def document_text(document: Dict[str, Any]) -> str:
    text = document.get("text") if isinstance(document, Mapping) else None
    return text if isinstance(text, str) else ""
