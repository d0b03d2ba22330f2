"""Package catalog service: seeding and read access."""

import logging
from typing import Any

from storefront.core.database import session_scope
from storefront.models import Package

logger = logging.getLogger(__name__)

DEFAULT_PACKAGES: list[dict[str, Any]] = [
    {
        "id": "starter",
        "name": "Starter",
        "description": "Perfect for small businesses and personal projects",
        "price": 49900,
        "features": [
            "Single page design",
            "Mobile responsive",
            "Basic SEO setup",
            "2 revision rounds",
            "5-day delivery",
        ],
        "delivery_days": 5,
    },
    {
        "id": "professional",
        "name": "Professional",
        "description": "Complete solution for growing businesses",
        "price": 149900,
        "features": [
            "Up to 5 pages",
            "Custom UI/UX design",
            "Advanced animations",
            "SEO optimization",
            "Social media kit",
            "5 revision rounds",
            "14-day delivery",
        ],
        "delivery_days": 14,
    },
    {
        "id": "enterprise",
        "name": "Enterprise",
        "description": "Full-scale digital transformation",
        "price": 399900,
        "features": [
            "Unlimited pages",
            "Complete brand identity",
            "Custom illustrations",
            "Advanced interactions",
            "E-commerce ready",
            "Priority support",
            "Unlimited revisions",
            "30-day delivery",
        ],
        "delivery_days": 30,
    },
]


def seed_default_packages() -> int:
    """Insert the default packages when the catalog is empty.

    Returns:
        int: Number of packages inserted.
    """
    with session_scope() as db:
        if db.query(Package).count() > 0:
            return 0
        for data in DEFAULT_PACKAGES:
            db.add(Package(active=True, **data))

    logger.info("Seeded %d default packages", len(DEFAULT_PACKAGES))
    return len(DEFAULT_PACKAGES)


class CatalogService:
    """Read-only access to the package catalog."""

    async def list_active_packages(self) -> list[dict[str, Any]]:
        """Get all active packages, cheapest first."""
        with session_scope() as db:
            packages = (
                db.query(Package)
                .filter(Package.active.is_(True))
                .order_by(Package.price)
                .all()
            )
            return [p.to_dict() for p in packages]

    async def get_package(self, package_id: str) -> dict[str, Any] | None:
        """Get a package by ID, active or not.

        Returns:
            dict | None: The package data or None if not found.
        """
        with session_scope() as db:
            package = db.get(Package, package_id)
            return package.to_dict() if package else None
