from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Any, Dict, List, Optional

PLACEHOLDER = "-"
CANONICAL_CODE_LENGTH = 4  ## código do mestre tem sempre 4 caracteres


class EntityNode(BaseModel): ##     Entidade achatada, uma por span extraído (recursiva)
    type: str
    value: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    normalized_value: str = Field(default="", alias="normalizedValue")
    page: int = Field(default=1, ge=1)
    properties: List["EntityNode"] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def display_value(self) -> str:
        return self.value or self.normalized_value or PLACEHOLDER

    def find_property(self, type_: str) -> Optional["EntityNode"]:
        """First child of the given type, in source order."""
        for prop in self.properties:
            if prop.type == type_:
                return prop
        return None

    def to_raw(self) -> Dict[str, Any]:
        """Raw entity record that flattens back to this node."""
        return {
            "type": self.type,
            "mentionText": self.value,
            "confidence": self.confidence,
            "normalizedValue": {"text": self.normalized_value},
            "pageAnchor": {"pageRefs": [{"page": self.page - 1}]},
            "properties": [prop.to_raw() for prop in self.properties],
        }


class Product(BaseModel): ##     Registro do mestre de produtos (somente leitura)
    id: int
    product_code: str
    product_name: str
    purchase_price: float = 0.0
    sales_price: float = 0.0

    model_config = ConfigDict(frozen=True)


class HeaderField(BaseModel):
    type: str
    value: str
    confidence: float = 0.0
    page: int = 1

    @computed_field
    @property
    def label(self) -> str:
        return self.type.replace("_", " ")


class ItemRow(BaseModel): ##     Linha de item resolvida + reconciliação com o mestre
    index: int
    values: Dict[str, str] = Field(default_factory=dict)
    confidences: Dict[str, float] = Field(default_factory=dict)
    page: int = 1

    original_code: str = PLACEHOLDER
    normalized_code: str = PLACEHOLDER
    matched_product: Optional[Product] = None
    has_discrepancy: bool = False

    def value_of(self, key: str) -> str:
        return self.values.get(key, PLACEHOLDER)

    @property
    def is_substituted(self) -> bool:
        return len(self.original_code) >= CANONICAL_CODE_LENGTH and self.matched_product is not None

    def corrected_value(self, key: str) -> str:
        """Display value with the master's canonical code/name substituted."""
        if self.is_substituted:
            if key == "product_code":
                return self.matched_product.product_code
            if key == "product_name":
                return self.matched_product.product_name
        return self.value_of(key)

    def corrected_values(self, keys: List[str]) -> List[str]:
        return [self.corrected_value(key) for key in keys]


class FormField(BaseModel):
    field_name: str = ""
    field_value: str = ""
    confidence: float = 0.0


class TableBlock(BaseModel):
    header_rows: List[List[str]] = Field(default_factory=list)
    body_rows: List[List[str]] = Field(default_factory=list)


class OrderExtractionResult(BaseModel): ##     Contrato entre o motor e a UI/exportação
    processor_type: str
    raw_text: str = ""

    entities: List[EntityNode] = Field(default_factory=list)
    header_fields: List[HeaderField] = Field(default_factory=list)
    items: List[ItemRow] = Field(default_factory=list)

    form_fields: List[FormField] = Field(default_factory=list)
    tables: List[TableBlock] = Field(default_factory=list)

    @computed_field
    @property
    def discrepancy_count(self) -> int:
        return sum(1 for item in self.items if item.has_discrepancy)
