from fastapi import APIRouter

from ecocoach.api.v1 import coaching, telemetry, trips, upload, users, vehicles

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
api_router.include_router(upload.router, prefix="/upload", tags=["upload"])
api_router.include_router(trips.router, prefix="/trips", tags=["trips"])
api_router.include_router(telemetry.router, prefix="/telemetry", tags=["telemetry"])
api_router.include_router(coaching.router, prefix="/coaching", tags=["coaching"])
