from typing import Iterable, List, Optional, Sequence

from ..schema.models import EntityNode, HeaderField
from .profiles import ProcessorProfile


def to_header_field(node: EntityNode) -> HeaderField:
    return HeaderField(
        type=node.type,
        value=node.display_value,
        confidence=node.confidence,
        page=node.page,
    )


def find_recipient_company(
    entities: Sequence[EntityNode],
    company_type: str = "recipient_company",
) -> Optional[EntityNode]:
    """Primeira ocorrência apenas; as demais são ignoradas."""
    return next((e for e in entities if e.type == company_type), None)


def resolve_header_fields(
    entities: Sequence[EntityNode],
    header_field_types: Iterable[str],
    company_type: str = "recipient_company",
    promoted_field_types: Iterable[str] = ("name", "address"),
) -> List[HeaderField]:
    """
    Campos de cabeçalho na ordem do documento:
    1. entidades de topo cujo type está no conjunto de cabeçalho
    2. name/address promovidos de dentro do recipient_company
    """
    header_types = set(header_field_types)
    promoted_types = set(promoted_field_types)

    direct = [e for e in entities if e.type in header_types]

    company = find_recipient_company(entities, company_type)
    promoted = [p for p in company.properties if p.type in promoted_types] if company else []

    return [to_header_field(node) for node in direct + promoted]


def resolve_profile_header(
    entities: Sequence[EntityNode], profile: ProcessorProfile
) -> List[HeaderField]:
    return resolve_header_fields(
        entities,
        profile.header_field_types,
        company_type=profile.promoted_company_type,
        promoted_field_types=profile.promoted_field_types,
    )
