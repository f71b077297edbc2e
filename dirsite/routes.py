from __future__ import annotations

import dataclasses
import logging
from typing import Sequence, TypeVar

from .content import SLUG_MAX_LENGTH, encoded_segments, slugify
from .models import Business, CatalogItem, Service

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DIRECTORY = "directorio"
PRODUCTS = "productos"
SERVICES = "servicios"
DEFAULT_CATEGORY = "otros"


def business_route(business: Business) -> tuple[str, str, bool]:
    """Return ``(category_slug, slug, pinned)`` for a business.

    A URL that already encodes ``directorio/<cat>/<slug>/`` wins over the
    current name and category, so renamed entries keep their address.
    """
    category_slug = slugify(business.category) or DEFAULT_CATEGORY
    slug = slugify(business.name) or "negocio"
    parts = encoded_segments(business.url, DIRECTORY)
    if parts and slugify(parts[0]):
        category_slug = slugify(parts[0])
    if len(parts) > 1 and slugify(parts[1]):
        slug = slugify(parts[1])
    pinned = len(parts) > 1 and bool(slugify(parts[0])) and bool(slugify(parts[1]))
    return category_slug, slug, pinned


def catalog_route(item: CatalogItem) -> tuple[str, str, bool]:
    if isinstance(item, Service):
        parts = encoded_segments(item.url, SERVICES)
        if parts and slugify(parts[0]):
            return SERVICES, slugify(parts[0]), True
        return SERVICES, slugify(item.name) or "servicio", False
    return PRODUCTS, slugify(item.name) or "producto", False


def with_suffix(slug: str, counter: int) -> str:
    suffix = f"-{counter}"
    return slug[: SLUG_MAX_LENGTH - len(suffix)].rstrip("-") + suffix


class PathRegistry:
    def __init__(self) -> None:
        self.used: set[str] = set()
        self.warnings: list[str] = []

    def claim(self, parent: str, slug: str, label: str) -> str:
        path = f"{parent}/{slug}/"
        if path in self.used:
            counter = 2
            while f"{parent}/{with_suffix(slug, counter)}/" in self.used:
                counter += 1
            resolved = f"{parent}/{with_suffix(slug, counter)}/"
            message = f"Path {path} is already taken; {label} moved to {resolved}"
            LOGGER.warning(message)
            self.warnings.append(message)
            path = resolved
        self.used.add(path)
        return path


def claim_order(pinned: Sequence[bool]) -> list[int]:
    return sorted(range(len(pinned)), key=lambda idx: (not pinned[idx], idx))


def route_businesses(businesses: Sequence[Business], registry: PathRegistry) -> list[Business]:
    routes = [business_route(business) for business in businesses]
    routed: list[Business] = list(businesses)
    for idx in claim_order([route[2] for route in routes]):
        category_slug, slug, _ = routes[idx]
        business = businesses[idx]
        path = registry.claim(f"{DIRECTORY}/{category_slug}", slug, business.name)
        routed[idx] = dataclasses.replace(business, path=path, category_slug=category_slug)
    return routed


def route_catalog(items: Sequence[T], registry: PathRegistry) -> list[T]:
    routes = [catalog_route(item) for item in items]
    routed = list(items)
    for idx in claim_order([route[2] for route in routes]):
        parent, slug, _ = routes[idx]
        item = items[idx]
        routed[idx] = dataclasses.replace(item, path=registry.claim(parent, slug, item.name))
    return routed


def pick_related(items: Sequence[T], index: int, limit: int) -> list[T]:
    if limit <= 0:
        return []
    peers = list(items[index + 1 :]) + list(items[:index])
    return peers[:limit]
