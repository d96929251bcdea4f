import pytest

from po_robot.core.catalog_loader import ProductCatalog
from po_robot.schema.models import Product

ORDER_TEXT = (
    "注文書\n"
    "注文番号 PO-7781\n"
    "注文日 2024/01/15\n"
    "ACME Trading\n"
    "Tokyo, Chiyoda 1-2-3\n"
    "TEL 03-1234-5678\n"
    "21605 Hand towel 12 120 1440\n"
    "9999 Unknown item 1 500 500\n"
)


def span(text: str, fragment: str) -> dict:
    """textAnchor cobrindo a primeira ocorrência do fragmento (offsets como string, igual ao JSON do protobuf)."""
    start = text.index(fragment)
    return {"textSegments": [{"startIndex": str(start), "endIndex": str(start + len(fragment))}]}


def entity(type_: str, mention: str = "", **extra) -> dict:
    raw = {"type": type_, "mentionText": mention}
    raw.update(extra)
    return raw


@pytest.fixture
def order_document():
    """
    Documento no formato retornado pelo Document AI (custom extractor).
    """
    text = ORDER_TEXT
    return {
        "text": text,
        "entities": [
            entity("order_number", textAnchor=span(text, "PO-7781"), confidence=0.98, pageAnchor={"pageRefs": [{}]}),
            entity("order_date", "2024/01/15", confidence=0.95, normalizedValue={"text": "2024-01-15"}),
            entity("recipient_company", "ACME Trading\nTokyo", confidence=0.9, properties=[
                entity("name", "ACME Trading", confidence=0.93),
                entity("address", textAnchor=span(text, "Tokyo, Chiyoda 1-2-3"), confidence=0.88),
                entity("phone", "03-0000-0000"),
            ]),
            entity("delivery_phone_number", "03-1234-5678", confidence=0.7),
            entity("item", confidence=0.91, pageAnchor={"pageRefs": [{"page": "1"}]}, properties=[
                entity("product_code", "21605", confidence=0.81),
                entity("product_name", "Hand towel", confidence=0.9),
                entity("quantity", "12"),
                entity("unit_price", "120"),
                entity("amount", "1440"),
            ]),
            entity("item", confidence=0.85, properties=[
                entity("product_code", "9999", confidence=0.77),
                entity("product_name", "Unknown item"),
                entity("quantity", "1"),
                entity("unit_price", "500"),
                entity("amount", "500"),
            ]),
            entity("item", properties=[
                entity("product_code", "12"),
                entity("product_name", "Short code"),
            ]),
        ],
    }


@pytest.fixture
def catalog():
    return ProductCatalog([
        Product(id=1, product_code="2160", product_name="Widget A", purchase_price=100, sales_price=150),
        Product(id=2, product_code="3305", product_name="Widget B", purchase_price=200, sales_price=320),
    ])


@pytest.fixture
def sample_context():
    return {
        "trace_id": "test-trace-123",
        "execution_id": "exec-001",
        "tenant_id": "tenant-A"
    }
