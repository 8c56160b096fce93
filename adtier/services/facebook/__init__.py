# Facebook Services Module
from adtier.services.facebook.graph_api import GraphApiClient
from adtier.services.facebook.connections import ConnectionStore
from adtier.services.facebook.data_sync import DataSyncService
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator

__all__ = [
    "GraphApiClient",
    "ConnectionStore",
    "DataSyncService",
    "ScheduledSyncCoordinator",
]
