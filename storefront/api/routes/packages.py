"""Package catalog API routes."""

from fastapi import APIRouter

from storefront.api.middleware.error_handler import NotFoundError
from storefront.schemas.catalog import PackageListResponse, PackageResponse
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/packages", tags=["packages"])


@router.get(
    "",
    response_model=PackageListResponse,
    summary="List packages",
    description="Returns all active design packages, cheapest first.",
)
async def list_packages() -> PackageListResponse:
    """List active packages."""
    service = CatalogService()
    packages = await service.list_active_packages()
    return PackageListResponse(items=[PackageResponse(**p) for p in packages])


@router.get(
    "/{package_id}",
    response_model=PackageResponse,
    summary="Get package",
    description="Returns a single package by its identifier.",
)
async def get_package(package_id: str) -> PackageResponse:
    """Get a package by ID.

    Raises:
        NotFoundError: If the package does not exist.
    """
    service = CatalogService()
    package = await service.get_package(package_id)
    if not package:
        raise NotFoundError("Package not found")
    return PackageResponse(**package)
