"""
DTOs del job de sincronizacion del catalogo.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from catalog_bff.shared.constants.catalog_constants import SyncState, SyncStatus


class SyncReportDTO(BaseModel):
    """Resumen de una corrida."""

    status: SyncStatus
    started_at: datetime
    finished_at: Optional[datetime] = None
    pages_fetched: int = 0
    records_fetched: int = 0
    records_kept: int = 0
    records_dropped: int = 0
    records_inserted: int = 0
    rejected_ids: List[str] = Field(default_factory=list)
    truncated: bool = False
    error: Optional[str] = None

    class Config:
        """Configuración de Pydantic."""
        from_attributes = True


class SyncStatusDTO(BaseModel):
    state: SyncState
    last_report: Optional[SyncReportDTO] = None


class SyncTriggerResponseDTO(BaseModel):
    started: bool
    state: SyncState
    message: str
