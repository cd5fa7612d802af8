from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from country_api import schemas
from country_api.database import get_db
from country_api.errors import CountryNotFound
from country_api.services import country_service
from country_api.services.fetch_data import DataGateway, get_gateway

router = APIRouter()


@router.post(
    "/refresh",
    response_model=schemas.RefreshResult,
    summary="Refresh country, currency, and exchange data",
    description=(
        "Fetches the latest data from external providers and upserts every country. "
        "Also regenerates the summary image for the top 5 GDP countries."
    ),
)
def refresh_countries(
    db: Session = Depends(get_db),
    gateway: DataGateway = Depends(get_gateway),
):
    return country_service.refresh_countries(db, gateway)


@router.get(
    "",
    response_model=List[schemas.CountryOut],
    summary="List countries",
    description=(
        "Returns countries with optional filtering and sorting.\n\n"
        "Filters (exact match):\n"
        "- region: e.g. 'Africa'\n"
        "- currency: currency code, e.g. 'NGN'\n\n"
        "Sorting (sort): gdp_desc|gdp_asc|name_asc|name_desc|population_desc|population_asc. "
        "Any other value keeps the default insertion order."
    ),
    response_description="List of countries",
)
def get_all(
    region: Optional[str] = Query(default=None, description="Filter by region (exact match)", examples=["Africa"]),
    currency: Optional[str] = Query(default=None, description="Filter by currency code (exact match)", examples=["NGN"]),
    sort: Optional[str] = Query(default=None, description="Sort order", examples=["gdp_desc"]),
    db: Session = Depends(get_db),
):
    filters = schemas.CountryFilter(region=region, currency_code=currency)
    return country_service.list_countries(db, filters, sort)


@router.get(
    "/image",
    summary="Get generated summary image",
    description="Returns the PNG produced by the last successful refresh.",
)
def get_image():
    if not country_service.summary_image_exists():
        raise HTTPException(status_code=404, detail="Summary image not found")
    return FileResponse(str(country_service.get_summary_image_path()), media_type="image/png")


@router.get(
    "/{name}",
    response_model=schemas.CountryOut,
    summary="Get country by name",
    description="Case-insensitive exact country name match.",
)
def get_one(
    name: str = Path(..., description="Country name", examples=["Nigeria"]),
    db: Session = Depends(get_db),
):
    return country_service.get_country(db, name)


@router.delete(
    "/{name}",
    response_model=schemas.MessageOut,
    summary="Delete a country by name",
)
def delete_country(
    name: str = Path(..., description="Country name", examples=["Nigeria"]),
    db: Session = Depends(get_db),
):
    if not country_service.delete_country(db, name):
        raise CountryNotFound(name)
    return {"message": "Country deleted successfully"}
