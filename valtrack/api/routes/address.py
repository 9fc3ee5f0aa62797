# =======================================================================================
# valtrack/api/routes/address.py - PSGC Address Lookup Endpoints
# =======================================================================================
from typing import List
from fastapi import APIRouter, Depends
from ...models.schemas import AddressOption
from ...services.address_service import AddressService
from ..dependencies import get_address_service

router = APIRouter()


@router.get("/address/regions", response_model=List[AddressOption])
def get_regions(address: AddressService = Depends(get_address_service)):
    return address.get_regions()


@router.get("/address/regions/{region_code}/provinces", response_model=List[AddressOption])
def get_provinces(region_code: str, address: AddressService = Depends(get_address_service)):
    return address.get_provinces_by_region(region_code)


@router.get("/address/regions/{region_code}/cities", response_model=List[AddressOption])
def get_region_cities(region_code: str, address: AddressService = Depends(get_address_service)):
    return address.get_cities_by_region(region_code)


@router.get("/address/provinces/{province_code}/cities", response_model=List[AddressOption])
def get_province_cities(province_code: str, address: AddressService = Depends(get_address_service)):
    return address.get_cities_by_province(province_code)


@router.get("/address/cities/{city_code}/barangays", response_model=List[AddressOption])
def get_barangays(city_code: str, address: AddressService = Depends(get_address_service)):
    return address.get_barangays_by_city(city_code)
