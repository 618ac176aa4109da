from fastapi import APIRouter, Depends
from supply_ledger.core.auth import get_current_session
from supply_ledger.api.v1.endpoints import auth, customers, entries, crops, reports

api_router = APIRouter()

protected = [Depends(get_current_session)]

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"], dependencies=protected)
api_router.include_router(entries.router, prefix="/entries", tags=["entries"], dependencies=protected)
api_router.include_router(crops.router, prefix="/crops", tags=["crops"], dependencies=protected)
api_router.include_router(reports.router, tags=["reports"], dependencies=protected)
