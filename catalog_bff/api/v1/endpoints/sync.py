"""
Endpoints para la sincronizacion del catalogo con el upstream.
La corrida se lanza en background; el estado se consulta por polling.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from catalog_bff.api.v1.dependencies.auth_deps import require_roles
from catalog_bff.api.v1.dependencies.use_case_deps import get_sync_coordinator
from catalog_bff.application.dto.sync_dto import SyncReportDTO, SyncStatusDTO, SyncTriggerResponseDTO
from catalog_bff.application.use_cases.catalog_sync_use_cases import CatalogSyncCoordinator
from catalog_bff.domain.entities.user import User
from catalog_bff.shared.constants.catalog_constants import UserRole


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/run",
    response_model=SyncTriggerResponseDTO,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Lanzar sincronizacion del catalogo"
)
async def run_sync(
    _: User = Depends(require_roles(UserRole.COMERCIAL)),
    coordinator: CatalogSyncCoordinator = Depends(get_sync_coordinator),
):
    if not coordinator.start_in_background():
        body = SyncTriggerResponseDTO(
            started=False,
            state=coordinator.state,
            message="Ya hay una sincronizacion en curso",
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))

    return SyncTriggerResponseDTO(
        started=True,
        state=coordinator.state,
        message="Sincronizacion iniciada",
    )


@router.get(
    "/status",
    response_model=SyncStatusDTO,
    summary="Estado de la sincronizacion"
)
async def sync_status(
    _: User = Depends(require_roles(UserRole.COMERCIAL)),
    coordinator: CatalogSyncCoordinator = Depends(get_sync_coordinator),
) -> SyncStatusDTO:
    report = coordinator.last_report
    return SyncStatusDTO(
        state=coordinator.state,
        last_report=SyncReportDTO.model_validate(report) if report else None,
    )


@router.post(
    "/cancel",
    response_model=SyncTriggerResponseDTO,
    summary="Cancelar la sincronizacion en curso"
)
async def cancel_sync(
    _: User = Depends(require_roles(UserRole.COMERCIAL)),
    coordinator: CatalogSyncCoordinator = Depends(get_sync_coordinator),
) -> SyncTriggerResponseDTO:
    cancelled = coordinator.cancel()
    return SyncTriggerResponseDTO(
        started=False,
        state=coordinator.state,
        message="Cancelacion solicitada" if cancelled else "No hay sincronizacion en curso",
    )
