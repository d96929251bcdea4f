import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError

from ..schema.models import Product
from .errors import CatalogLoadError

logger = logging.getLogger(__name__)


class ProductCatalog:
    """
    Mestre de produtos imutável, carregado uma vez por invocação.
    Lookup por código exato (códigos são únicos no mestre).
    """

    def __init__(self, products: Iterable[Product]):
        self._products = tuple(products)
        self._by_code: Dict[str, Product] = {}

        for product in self._products:
            if product.product_code in self._by_code:
                raise CatalogLoadError(
                    "Duplicate product code in product master",
                    details=f"product_code={product.product_code!r}",
                )
            self._by_code[product.product_code] = product

    def find(self, product_code: str) -> Optional[Product]:
        return self._by_code.get(product_code)

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    def __contains__(self, product_code: object) -> bool:
        return product_code in self._by_code


def parse_product_catalog(data: Any) -> ProductCatalog:
    """Aceita {"products": [...]} (formato do /api/products) ou lista pura."""
    records = data.get("products") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise CatalogLoadError(
            "Product master must be a list of products",
            details=f"Got {type(records).__name__}",
        )

    try:
        products = [Product.model_validate(record) for record in records]
    except ValidationError as e:
        raise CatalogLoadError("Invalid product record in product master", details=str(e))

    return ProductCatalog(products)


def load_product_catalog(path: Union[str, Path]) -> ProductCatalog:
    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise CatalogLoadError("Product master file not found", details=str(file_path))
    except json.JSONDecodeError as e:
        raise CatalogLoadError("Product master is not valid JSON", details=str(e))

    catalog = parse_product_catalog(data)
    logger.info("Product master loaded: %d products from %s", len(catalog), file_path)
    return catalog
