from integrations.services.signature_service import SignatureService
from integrations.services.ingestion_service import IngestionResult, SalesIngestionService

__all__ = [
    'SignatureService',
    'IngestionResult',
    'SalesIngestionService',
]
