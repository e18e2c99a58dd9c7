"""
Excepciones del pipeline de sincronizacion del catalogo.

Politica de propagacion:
- UpstreamAuthError y UpstreamFetchError abortan la corrida completa.
- RecordValidationError afecta a un solo registro (se descarta y se sigue).
- CatalogPersistenceError con `rejected_ids` afecta a un subconjunto; sin
  ellos indica un fallo total del reemplazo (transaccion revertida).
"""
from typing import List, Optional

from catalog_bff.shared.exceptions.base import AppException
from catalog_bff.shared.exceptions.domain import DomainException


class UpstreamAuthError(AppException):
    """Fallo de login contra el catalogo upstream."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="UPSTREAM_AUTH_ERROR",
            details={"upstream_status": status_code}
        )
        self.upstream_status = status_code


class UpstreamFetchError(AppException):
    """Fallo pidiendo una pagina despues de autenticar."""

    def __init__(self, message: str, page: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="UPSTREAM_FETCH_ERROR",
            details={"page": page, "upstream_status": status_code}
        )
        self.page = page
        self.upstream_status = status_code


class UpstreamRejectedError(UpstreamFetchError):
    """El upstream rechazo el token (401/403)."""


class SyncCancelledError(UpstreamFetchError):
    """La corrida se cancelo entre paginas."""

    def __init__(self, page: Optional[int] = None):
        super().__init__(f"Sincronizacion cancelada antes de la pagina {page}", page=page)
        self.error_code = "SYNC_CANCELLED"


class FilterExpressionError(DomainException):
    """La expresion `where` no se puede construir (clausula OR vacia)."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="FILTER_EXPRESSION_ERROR")


class RecordValidationError(DomainException):
    """Un registro upstream no paso la validacion de esquema."""

    def __init__(self, record_id: Optional[str], violations: List[str]):
        label = record_id or "<sin id>"
        super().__init__(
            message=f"Registro {label} invalido: {'; '.join(violations)}",
            error_code="RECORD_VALIDATION_ERROR",
            details={"record_id": record_id, "violations": violations}
        )
        self.record_id = record_id
        self.violations = violations


class CatalogPersistenceError(AppException):
    """El almacen rechazo documentos durante el reemplazo."""

    def __init__(self, message: str, rejected_ids: Optional[List[str]] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CATALOG_PERSISTENCE_ERROR",
            details={"rejected_ids": list(rejected_ids or [])}
        )
        self.rejected_ids = list(rejected_ids or [])
