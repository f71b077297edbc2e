from __future__ import annotations

import json
from pathlib import Path

import pytest

from dirsite.config import SiteConfig

BUSINESSES = [
    {
        "nombre": "El Buen Sabor",
        "categoria": "Comida Rápida",
        "direccion": "Calle 41 #5-20",
        "telefono": "3001234567",
        "horario": "Lu-Do 10:00-22:00",
        "descripcion": "Hamburguesas y perros calientes.",
        "icono": "https://cdn.example.com/sabor.png",
        "seo_md": "## Menú\n\n- Hamburguesa\n- Perro caliente",
    },
    {
        "nombre": "Pizzería Napoli",
        "categoria": "Comida Rápida",
        "direccion": "Carrera 3 #30-12",
    },
    {
        "nombre": "Ferretería Central",
        "categoria": "Ferreterías",
        "url": "https://example.com/directorio/ferreteria/central/",
    },
]

PRODUCTS = [
    {"nombre": "Laptop", "precio": "$1.200.000", "descripcion": "Potente laptop."},
    {"nombre": "Smartphone", "precio": "consultar"},
]

SERVICES = [
    {"nombre": "Reparación de PC", "precio": 300, "url": "/servicios/reparacion-pc/"},
    {"nombre": "Instalación de software", "precio": "$100"},
]

CATEGORIES = [
    {"nombre": "Comida Rápida", "icono": "https://cdn.example.com/food.png"},
    {"nombre": "Panaderías"},
]


def write_json(path: Path, data: object) -> None:
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    write_json(tmp_path / "negocios.json", BUSINESSES)
    write_json(tmp_path / "productos.json", PRODUCTS)
    write_json(tmp_path / "servicios.json", SERVICES)
    write_json(tmp_path / "categorias.json", CATEGORIES)
    return tmp_path


@pytest.fixture
def config() -> SiteConfig:
    return SiteConfig(site_url="https://directorio.example.com/")
