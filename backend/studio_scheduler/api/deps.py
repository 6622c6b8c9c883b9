"""
Service Dependencies for the scheduler API.

One ``ServiceContainer`` is created per application and stored on
``app.state``; endpoints receive the individual services through the
``*Dep`` aliases below.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..application.services.reclassification_service import ReclassificationService
from ..application.services.structure_service import SchedulerStructureService
from ..application.services.sync_service import OrderSyncService
from ..domain.scheduling.repositories.collaborators import StudioSchedulerGateway
from ..infrastructure.adapters.in_memory_gateway import InMemoryStudioSchedulerGateway


class ServiceContainer:
    """
    Container that wires the collaborator gateway into the application services.

    Services are created lazily and shared by every request of the application,
    so snapshots, caches and in-flight mutation bookkeeping persist between
    requests.
    """

    def __init__(self, gateway: StudioSchedulerGateway | None = None):
        self.gateway = gateway or InMemoryStudioSchedulerGateway()
        self._structure: SchedulerStructureService | None = None
        self._reclassification: ReclassificationService | None = None
        self._sync: OrderSyncService | None = None

    @property
    def structure(self) -> SchedulerStructureService:
        if self._structure is None:
            self._structure = SchedulerStructureService(self.gateway)
        return self._structure

    @property
    def reclassification(self) -> ReclassificationService:
        if self._reclassification is None:
            self._reclassification = ReclassificationService(self.structure)
        return self._reclassification

    @property
    def sync(self) -> OrderSyncService:
        if self._sync is None:
            self._sync = OrderSyncService(self.structure)
        return self._sync


def get_service_container(request: Request) -> ServiceContainer:
    return request.app.state.services


ServiceContainerDep = Annotated[ServiceContainer, Depends(get_service_container)]


def get_structure_service(services: ServiceContainerDep) -> SchedulerStructureService:
    return services.structure


def get_reclassification_service(services: ServiceContainerDep) -> ReclassificationService:
    return services.reclassification


def get_sync_service(services: ServiceContainerDep) -> OrderSyncService:
    return services.sync


# Type annotations for dependency injection
StructureServiceDep = Annotated[SchedulerStructureService, Depends(get_structure_service)]
ReclassificationServiceDep = Annotated[
    ReclassificationService, Depends(get_reclassification_service)
]
SyncServiceDep = Annotated[OrderSyncService, Depends(get_sync_service)]
