"""
Dependencias para inyección de casos de uso.
"""
from fastapi import Request

from storesync.application.use_cases.event_applier import EventApplier
from storesync.application.use_cases.sync_use_cases import SyncOrchestrator


def get_sync_orchestrator(request: Request) -> SyncOrchestrator:
    """
    Dependencia para obtener el orquestador de syncs.

    Es único por proceso (creado en el startup): el registro de jobs y la
    exclusividad por tienda dependen de compartir la instancia.

    Returns:
        SyncOrchestrator: Instancia guardada en `app.state`
    """
    return request.app.state.sync_orchestrator


def get_event_applier(request: Request) -> EventApplier:
    """
    Dependencia para obtener el aplicador de webhooks.

    Returns:
        EventApplier: Instancia guardada en `app.state`
    """
    return request.app.state.event_applier
