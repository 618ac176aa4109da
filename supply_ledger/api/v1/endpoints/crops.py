from fastapi import APIRouter

from supply_ledger.schemas.entry import CropTypesResponse
from supply_ledger.services.charge_service import ChargeService

router = APIRouter()


@router.get("", response_model=CropTypesResponse)
async def list_crop_types():
    charges = ChargeService()
    return CropTypesResponse(
        crop_types=charges.available_crop_types(),
        default_crop_type=charges.default_crop
    )
