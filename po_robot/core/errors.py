from typing import Optional


class OrderProcessingError(Exception):
    """Base error for the purchase order pipeline."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class MalformedInputError(OrderProcessingError):
    """Input to the flattener is not a record (fatal, never retried)."""


class NoDocumentError(OrderProcessingError):
    """Document AI answered without a document body."""


class DocumentAIError(OrderProcessingError):
    """The Document AI call itself failed."""


class CatalogLoadError(OrderProcessingError):
    """Product master could not be read or violates code uniqueness."""


class UnknownProcessorError(OrderProcessingError):
    pass


class ExportError(OrderProcessingError):
    pass
