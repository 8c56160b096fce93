"""
Dependency injection for FastAPI
"""
from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from adtier.core.database import Database
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator


def get_database(request: Request) -> Database:
    """The process-wide Database built by create_app"""
    return request.app.state.db


def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session"""
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()


def get_coordinator(request: Request) -> ScheduledSyncCoordinator:
    return request.app.state.coordinator
