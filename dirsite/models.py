from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from .content import parse_price, slugify

T = TypeVar("T")


def to_text(value: object) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def pick(record: dict, *keys: str) -> str:
    for key in keys:
        value = to_text(record.get(key))
        if value:
            return value
    return ""


@dataclass(frozen=True)
class Business:
    name: str
    category: str = ""
    address: str = ""
    phone: str = ""
    hours: str = ""
    description: str = ""
    url: str = ""
    whatsapp: str = ""
    image: str = ""
    seo_md: str = ""
    path: str = ""
    category_slug: str = ""

    @classmethod
    def from_record(cls, record: dict) -> "Business":
        return cls(
            name=pick(record, "nombre", "name"),
            category=pick(record, "categoria", "category"),
            address=pick(record, "direccion", "address"),
            phone=pick(record, "telefono", "phone"),
            hours=pick(record, "horario", "hours"),
            description=pick(record, "descripcion", "description"),
            url=pick(record, "url"),
            whatsapp=pick(record, "whatsapp"),
            image=pick(record, "icono", "logo", "imagen", "icon", "image"),
            seo_md=to_text(record.get("seo_md")),
        )


@dataclass(frozen=True)
class CatalogItem:
    name: str
    price: str = ""
    price_value: Optional[float] = None
    description: str = ""
    image: str = ""
    url: str = ""
    whatsapp: str = ""
    seo_md: str = ""
    path: str = ""

    @classmethod
    def from_record(cls, record: dict):
        raw_price = record.get("precio", record.get("price"))
        return cls(
            name=pick(record, "nombre", "name"),
            price=to_text(raw_price),
            price_value=parse_price(raw_price),
            description=pick(record, "descripcion", "description"),
            image=pick(record, "imagen", "image", "icono", "icon"),
            url=pick(record, "url"),
            whatsapp=pick(record, "whatsapp"),
            seo_md=to_text(record.get("seo_md")),
        )


class Product(CatalogItem):
    pass


class Service(CatalogItem):
    pass


@dataclass(frozen=True)
class Category:
    name: str
    slug: str
    icon: str = ""
    count: int = 0


def load_collection(path: Path) -> tuple[list[dict], list[str]]:
    if not path.exists():
        return [], []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        return [], [f"Could not read {path.name}: {exc}"]
    if not isinstance(data, list):
        return [], [f"{path.name} must contain a JSON array; ignoring it."]
    records = []
    warnings = []
    for idx, item in enumerate(data):
        if isinstance(item, dict):
            records.append(item)
        else:
            warnings.append(f"{path.name}[{idx}] is not an object; skipped.")
    return records, warnings


def load_entities(path: Path, factory: Callable[[dict], T]) -> tuple[list[T], list[str]]:
    records, warnings = load_collection(path)
    entities = []
    for idx, record in enumerate(records):
        entity = factory(record)
        if not entity.name:
            warnings.append(f"{path.name}[{idx}] has no name; skipped.")
            continue
        entities.append(entity)
    return entities, warnings


def load_businesses(path: Path) -> tuple[list[Business], list[str]]:
    return load_entities(path, Business.from_record)


def load_products(path: Path) -> tuple[list[Product], list[str]]:
    return load_entities(path, Product.from_record)


def load_services(path: Path) -> tuple[list[Service], list[str]]:
    return load_entities(path, Service.from_record)


def load_categories(path: Path) -> tuple[list[Category], list[str]]:
    records, warnings = load_collection(path)
    categories = []
    for record in records:
        name = pick(record, "nombre", "name") or "Otros"
        slug = slugify(pick(record, "slug")) or slugify(name) or "otros"
        categories.append(Category(name=name, slug=slug, icon=pick(record, "icono", "icon")))
    return categories, warnings
