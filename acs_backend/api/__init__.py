"""
API package for the access controller management backend.

This package aggregates the routers included in the FastAPI application.
Routes live under ``/api/<area>``; everything except login, the public
factory-settings read and the event stream requires a bearer token.
"""

from fastapi import APIRouter, Depends
from .v1.controller_users import router as controller_users_router, public_router as controller_users_public_router
from .v1.people import router as people_router, department_router
from .v1.credentials import router as credentials_router
from .v1.groups import router as groups_router
from .v1.devices import router as devices_router, public_router as devices_public_router
from .v1.events import router as events_router, ws_router as events_ws_router
from ..core.auth import get_current_user

api_router = APIRouter()
protected = [Depends(get_current_user)]
api_router.include_router(controller_users_public_router)
api_router.include_router(controller_users_router, dependencies=protected)
api_router.include_router(department_router, dependencies=protected)
api_router.include_router(people_router, dependencies=protected)
api_router.include_router(credentials_router, dependencies=protected)
api_router.include_router(groups_router, dependencies=protected)
api_router.include_router(devices_public_router)
api_router.include_router(devices_router, dependencies=protected)
api_router.include_router(events_router, dependencies=protected)
api_router.include_router(events_ws_router)
