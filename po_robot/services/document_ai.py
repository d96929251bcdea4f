"""
Adapter for the Document AI custom extractor (external collaborator).

Sends the raw file, returns the document as a plain dict in the JSON
(camelCase) shape the flattener consumes.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

from google.api_core.client_options import ClientOptions
from google.api_core.exceptions import GoogleAPIError
from google.cloud import documentai_v1 as documentai
from google.oauth2 import service_account

from ..core.errors import DocumentAIError, NoDocumentError

logger = logging.getLogger(__name__)


def build_credentials(value: Optional[str]) -> Optional[service_account.Credentials]:
    """
    GOOGLE_APPLICATION_CREDENTIALS pode ser o JSON inline (deploy) ou um caminho (local).
    Sem valor: credenciais default do ambiente.
    """
    if not value:
        return None
    try:
        info = json.loads(value)
    except json.JSONDecodeError:
        return service_account.Credentials.from_service_account_file(value)
    return service_account.Credentials.from_service_account_info(info)


class DocumentAIClient:

    def __init__(
        self,
        project_id: Optional[str],
        location: Optional[str],
        processor_id_for: Callable[[str], Optional[str]],
        credentials: Optional[str] = None,
        client: Optional[documentai.DocumentProcessorServiceClient] = None,
    ):
        self.project_id = project_id
        self.location = location
        self.processor_id_for = processor_id_for
        self._credentials = credentials
        self._client = client

    @classmethod
    def from_settings(cls, settings) -> "DocumentAIClient":
        return cls(
            project_id=settings.GOOGLE_CLOUD_PROJECT_ID,
            location=settings.GOOGLE_CLOUD_LOCATION,
            processor_id_for=settings.processor_id_for,
            credentials=settings.GOOGLE_APPLICATION_CREDENTIALS,
        )

    @property
    def client(self) -> documentai.DocumentProcessorServiceClient:
        if self._client is None:
            self._client = documentai.DocumentProcessorServiceClient(
                credentials=build_credentials(self._credentials),
                client_options=ClientOptions(api_endpoint=f"{self.location}-documentai.googleapis.com"),
            )
        return self._client

    def processor_name(self, processor_type: str) -> str:
        processor_id = self.processor_id_for(processor_type)
        if not (self.project_id and self.location and processor_id):
            raise DocumentAIError(
                "Document AI is not configured",
                details="Set GOOGLE_CLOUD_PROJECT_ID, GOOGLE_CLOUD_LOCATION and a processor id",
            )
        return f"projects/{self.project_id}/locations/{self.location}/processors/{processor_id}"

    def process_document(self, content: bytes, mime_type: str, processor_type: str) -> Dict[str, Any]:
        name = self.processor_name(processor_type)
        request = documentai.ProcessRequest(
            name=name,
            raw_document=documentai.RawDocument(content=content, mime_type=mime_type),
        )

        logger.info("Calling Document AI processor %s (%d bytes, %s)", name, len(content), mime_type)
        try:
            result = self.client.process_document(request=request)
        except GoogleAPIError as e:
            raise DocumentAIError("Document AI processing failed", details=str(e)) from e

        if not result.document:
            raise NoDocumentError("Document AI returned no document")

        return documentai.Document.to_dict(result.document, preserving_proto_field_name=False)
