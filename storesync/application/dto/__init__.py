"""
Data Transfer Objects (DTOs) para la capa de aplicación.
"""
from .store_dto import StoreResponseDTO, StoreListResponseDTO
from .sync_dto import (
    ItemFailureDTO,
    SyncCountsDTO,
    SyncReportDTO,
    SyncAcceptedDTO,
    SyncCompletedDTO,
    SyncJobStatusDTO,
    TenantSyncStatusDTO,
)
from .webhook_dto import ApplyResultDTO

__all__ = [
    "StoreResponseDTO",
    "StoreListResponseDTO",
    "ItemFailureDTO",
    "SyncCountsDTO",
    "SyncReportDTO",
    "SyncAcceptedDTO",
    "SyncCompletedDTO",
    "SyncJobStatusDTO",
    "TenantSyncStatusDTO",
    "ApplyResultDTO",
]
