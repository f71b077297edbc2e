from __future__ import annotations

import argparse
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path

from .cache import build_manifest, carried_pages, load_lock, previous_pages, prune_stale, write_lock
from .config import DEFAULT_SITE_URL, SiteConfig, load_config
from .models import (
    Business,
    Category,
    load_businesses,
    load_categories,
    load_products,
    load_services,
)
from .pages import (
    build_business_page,
    build_category_page,
    build_directory_page,
    build_product_page,
    build_service_page,
    render_robots,
    render_sitemap,
)
from .render import DEFAULT_TEMPLATES, read_template, write_text
from .routes import PathRegistry, pick_related, route_businesses, route_catalog
from .utils import join_url, parse_bool, parse_int

LOGGER = logging.getLogger(__name__)

BUSINESSES_FILE = "negocios.json"
PRODUCTS_FILE = "productos.json"
SERVICES_FILE = "servicios.json"
CATEGORIES_FILE = "categorias.json"


@dataclass
class BuildResult:
    pages: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)


def group_by_category(businesses: list[Business]) -> dict[str, list[Business]]:
    groups: dict[str, list[Business]] = {}
    for business in businesses:
        groups.setdefault(business.category_slug, []).append(business)
    return groups


def directory_categories(explicit: list[Category], groups: dict[str, list[Business]]) -> list[Category]:
    categories = []
    seen = set()
    for category in explicit:
        if category.slug in seen:
            continue
        seen.add(category.slug)
        count = len(groups.get(category.slug, []))
        categories.append(Category(name=category.name, slug=category.slug, icon=category.icon, count=count))
    for slug, members in groups.items():
        if slug in seen:
            continue
        categories.append(Category(name=members[0].category or slug, slug=slug, count=len(members)))
    return categories


def generate(root: Path, config: SiteConfig) -> BuildResult:
    data_dir = root / config.data_dir
    output_dir = root / config.output_dir
    templates_dir = root / config.templates_dir if config.templates_dir else DEFAULT_TEMPLATES
    base_template = read_template(templates_dir / "base.html")

    result = BuildResult()
    businesses, warnings = load_businesses(data_dir / BUSINESSES_FILE)
    result.warnings.extend(warnings)
    products, warnings = load_products(data_dir / PRODUCTS_FILE)
    result.warnings.extend(warnings)
    services, warnings = load_services(data_dir / SERVICES_FILE)
    result.warnings.extend(warnings)
    explicit_categories, warnings = load_categories(data_dir / CATEGORIES_FILE)
    result.warnings.extend(warnings)
    for message in result.warnings:
        LOGGER.warning(message)

    registry = PathRegistry()
    businesses = route_businesses(businesses, registry)
    products = route_catalog(products, registry)
    services = route_catalog(services, registry)
    result.warnings.extend(registry.warnings)

    rendered: dict[str, str] = {}
    result.urls.extend([join_url(config.site_url, ""), join_url(config.site_url, "index.html")])

    def emit(page_path: str, text: str) -> None:
        rel = f"{page_path}index.html"
        write_text(output_dir / rel, text)
        LOGGER.debug("Wrote %s", rel)
        rendered[rel] = text
        result.pages.append(rel)
        result.urls.append(join_url(config.site_url, page_path))

    groups = group_by_category(businesses)
    for business in businesses:
        members = groups[business.category_slug]
        related = pick_related(members, members.index(business), config.related_limit)
        emit(business.path, build_business_page(base_template, config, business, related))

    categories = directory_categories(explicit_categories, groups)
    for category in categories:
        if category.slug not in groups:
            continue
        emit(f"directorio/{category.slug}/", build_category_page(base_template, config, category, groups[category.slug]))
    emit("directorio/", build_directory_page(base_template, config, categories))

    for idx, product in enumerate(products):
        related = pick_related(products, idx, config.related_limit)
        emit(product.path, build_product_page(base_template, config, product, related))
    for idx, service in enumerate(services):
        related = pick_related(services, idx, config.related_limit)
        emit(service.path, build_service_page(base_template, config, service, related))

    write_text(output_dir / "sitemap.xml", render_sitemap(result.urls))
    write_text(output_dir / "robots.txt", render_robots(config.site_url))

    lock_path = output_dir / config.lock_file
    lock = load_lock(lock_path)
    stale = previous_pages(lock) - set(rendered)
    carried: dict[str, str] = {}
    if config.prune:
        result.pruned = prune_stale(output_dir, stale)
        for rel in result.pruned:
            LOGGER.info("Removed stale page %s", rel)
    else:
        # still ours; a later pruning run removes them
        carried = carried_pages(lock, output_dir, stale)
    write_lock(lock_path, build_manifest(rendered, carried))

    LOGGER.info(
        "Generated %d pages (%d businesses, %d categories, %d products, %d services).",
        len(result.pages),
        len(businesses),
        len(groups),
        len(products),
        len(services),
    )
    return result


def main() -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args()
    config = load_config(Path(pre_args.config))

    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        value = cfg_value(key, default)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = cfg_value(key, default)
        return parse_bool(value) if value is not None else default

    def cfg_int(key: str, default: int) -> int:
        value = cfg_value(key, default)
        return parse_int(value, default)

    parser = argparse.ArgumentParser(description="Static page generator for a local business directory.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--root", default=cfg_str("root", "."), help="Working directory holding data and output.")
    parser.add_argument("--data", default=cfg_str("data", "."), help="Directory with the JSON collections.")
    parser.add_argument("--output", default=cfg_str("output", "."), help="Output directory for generated pages.")
    parser.add_argument(
        "--site-url",
        default=os.environ.get("SITE_URL") or cfg_str("site_url", DEFAULT_SITE_URL),
        help="Public site URL used for canonical links and the sitemap (defaults to $SITE_URL).",
    )
    parser.add_argument("--site-name", default=cfg_str("site_name", "Directorio Montería"), help="Site title.")
    parser.add_argument("--city", default=cfg_str("city", "Montería"), help="City named in titles and structured data.")
    parser.add_argument("--lang", default=cfg_str("lang", "es"), help="Document language.")
    parser.add_argument("--currency", default=cfg_str("currency", "COP"), help="ISO currency for offer prices.")
    parser.add_argument(
        "--whatsapp-number",
        default=cfg_str("whatsapp_number", "573000000000"),
        help="Fallback WhatsApp number for entries without their own link.",
    )
    parser.add_argument(
        "--og-image",
        default=cfg_str("og_image", "/og-image.png"),
        help="Default Open Graph image for pages without one.",
    )
    parser.add_argument("--stylesheet", default=cfg_str("stylesheet", "styles.css"), help="Stylesheet path at the site root.")
    parser.add_argument(
        "--related-limit",
        default=cfg_int("related_limit", 5),
        type=int,
        help="Maximum number of related entries listed on a detail page.",
    )
    parser.add_argument(
        "--templates",
        default=cfg_str("templates", ""),
        help="Directory with a custom base.html (defaults to the bundled one).",
    )
    parser.add_argument(
        "--prune",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("prune", True),
        help="Delete pages generated by the previous build that no longer have an entry.",
    )
    parser.add_argument(
        "--lock-file",
        default=cfg_str("lock_file", "build.lock.json"),
        help="Build manifest file name, relative to the output directory.",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("verbose", False),
        help="Log every written page.",
    )
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    start = time.perf_counter()
    result = generate(Path(args.root), SiteConfig.from_args(args))
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"{len(result.pages)} pages generated in: {Path(args.root) / args.output}")
