from typing import Dict, Literal, Tuple
from pydantic import BaseModel, ConfigDict

from .errors import UnknownProcessorError


class ItemColumn(BaseModel):
    key: str
    label: str
    align: Literal["left", "right"] = "left"

    model_config = ConfigDict(frozen=True)


class ProcessorProfile(BaseModel):
    """
    Variante de processamento (um processador Document AI por layout de pedido).
    Os dois layouts diferem apenas nos campos de cabeçalho e no processador.
    """
    processor_type: str
    display_name: str
    header_field_types: Tuple[str, ...]
    item_columns: Tuple[ItemColumn, ...]
    promoted_company_type: str = "recipient_company"
    promoted_field_types: Tuple[str, ...] = ("name", "address")

    model_config = ConfigDict(frozen=True)

    @property
    def column_keys(self) -> Tuple[str, ...]:
        return tuple(col.key for col in self.item_columns)

    @property
    def column_labels(self) -> Tuple[str, ...]:
        return tuple(col.label for col in self.item_columns)


ITEM_COLUMNS: Tuple[ItemColumn, ...] = (
    ItemColumn(key="jan_code", label="JANコード", align="left"),
    ItemColumn(key="product_code", label="コード", align="left"),
    ItemColumn(key="product_name", label="品名・規格", align="left"),
    ItemColumn(key="quantity_per_case", label="入数", align="right"),
    ItemColumn(key="box_count", label="BOX数", align="right"),
    ItemColumn(key="case_count", label="ケース", align="right"),
    ItemColumn(key="quantity", label="数量", align="right"),
    ItemColumn(key="unit_price", label="単価", align="right"),
    ItemColumn(key="amount", label="金額", align="right"),
    ItemColumn(key="delivery_date", label="納期/備考", align="left"),
)

SANNOTE = ProcessorProfile(
    processor_type="sannote",
    display_name="サンノート株式会社",
    header_field_types=("address", "name", "delivery_phone_number", "order_date", "order_number"),
    item_columns=ITEM_COLUMNS,
)

YAC = ProcessorProfile(
    processor_type="yac",
    display_name="槌屋YAC株式会社",
    header_field_types=("order_number", "order_date", "delivery_phone_number"),
    item_columns=ITEM_COLUMNS,
)

PROFILES: Dict[str, ProcessorProfile] = {
    SANNOTE.processor_type: SANNOTE,
    YAC.processor_type: YAC,
}


def get_profile(processor_type: str) -> ProcessorProfile:
    try:
        return PROFILES[processor_type]
    except KeyError:
        raise UnknownProcessorError(
            f"Unknown processor type: {processor_type!r}",
            details=f"Expected one of: {sorted(PROFILES)}",
        )
