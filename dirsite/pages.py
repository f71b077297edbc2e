from __future__ import annotations

import html
from typing import Iterable, Optional, Sequence

from .config import SiteConfig
from .content import format_price
from .md import render_markdown
from .models import Business, CatalogItem, Category
from .render import esc, json_ld_script, render_template
from .utils import join_url, relative_root, safe_url, whatsapp_link

SCHEMA_CONTEXT = "https://schema.org"

PRODUCT_KIND = {
    "label": "Producto",
    "section": "Productos",
    "section_href": "index.html#productos",
    "schema_type": "Product",
    "og_type": "product",
    "css": "detail--product",
    "greeting": "Hola, me interesa el producto",
    "related": "Otros productos",
}
SERVICE_KIND = {
    "label": "Servicio",
    "section": "Servicios",
    "section_href": "index.html#servicios",
    "schema_type": "Service",
    "og_type": "website",
    "css": "detail--service",
    "greeting": "Hola, me interesa el servicio",
    "related": "Otros servicios",
}


def build_document(
    base_template: str,
    config: SiteConfig,
    *,
    title: str,
    description: str,
    page_path: str,
    content: str,
    after_main: str = "",
    structured: Sequence[dict] = (),
    og_type: str = "website",
    image: str = "",
) -> str:
    root = relative_root(page_path)
    stylesheet = config.stylesheet if root == "." else f"{root}/{config.stylesheet}"
    extra_head = "\n".join(f"  {json_ld_script(data)}" for data in structured)
    return render_template(
        base_template,
        lang=esc(config.lang),
        title=esc(title),
        description=esc(description),
        canonical=esc(join_url(config.site_url, page_path)),
        stylesheet=esc(stylesheet),
        og_type=esc(og_type),
        site_name=esc(config.site_name),
        image=esc(image or config.og_image),
        extra_head=extra_head,
        content=content,
        after_main=after_main,
    )


def breadcrumb_nav(root: str, trail: Sequence[tuple[str, str]]) -> str:
    links = [f'<a href="{esc(root)}/{esc(href)}">{esc(name)}</a>' for name, href in trail[:-1]]
    links.append(f"<span>{esc(trail[-1][0])}</span>")
    return f'<nav class="breadcrumbs">{" / ".join(links)}</nav>'


def breadcrumb_ld(config: SiteConfig, trail: Sequence[tuple[str, str]]) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": name,
                "item": join_url(config.site_url, href),
            }
            for position, (name, href) in enumerate(trail, start=1)
        ],
    }


def item_list_ld(config: SiteConfig, entries: Iterable[tuple[str, str]]) -> dict:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "ItemList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": name,
                "url": join_url(config.site_url, path),
            }
            for position, (name, path) in enumerate(entries, start=1)
        ],
    }


def detail_rows(rows: Sequence[tuple[str, str]]) -> str:
    return "".join(f"<dt>{esc(label)}</dt><dd>{esc(value)}</dd>" for label, value in rows if value)


def seo_section(source: str) -> str:
    if not source:
        return ""
    return f'<section class="seo-content container">{render_markdown(source)}</section>'


def related_section(root: str, heading: str, items: Sequence, with_address: bool = False) -> str:
    if not items:
        return ""
    rows = []
    for item in items:
        extra = ""
        if with_address and getattr(item, "address", ""):
            extra = f" <small>{esc(item.address)}</small>"
        rows.append(f'<li><a href="{esc(root)}/{esc(item.path)}">{esc(item.name)}</a>{extra}</li>')
    return (
        '<section class="related">'
        f'<h2 class="section-title">{esc(heading)}</h2>'
        f'<ul class="list-simple">{"".join(rows)}</ul>'
        "</section>"
    )


def detail_article(
    *,
    css: str,
    name: str,
    pill: str,
    image: str,
    lead: str,
    whatsapp: str,
    back_href: str,
    back_label: str,
    rows: Sequence[tuple[str, str]],
    related: str,
) -> str:
    icon = ""
    if image:
        icon = (
            f'<img class="detail-icon" src="{esc(image)}" alt="{esc(name)}"'
            ' width="72" height="72" loading="lazy" decoding="async">'
        )
    return (
        f'<article class="detail {css}">'
        '<div class="detail-grid"><div class="detail-main">'
        f'<header class="detail-header">{icon}'
        f'<div><h1 class="detail-title">{esc(name)}</h1>'
        f'<div class="pill-cat">{esc(pill)}</div></div>'
        "</header>"
        f"{lead}"
        '<div class="detail-actions">'
        f'<a class="btn-wa" href="{esc(whatsapp)}" target="_blank" rel="noopener">WhatsApp</a>'
        f'<a class="btn-info" href="{esc(back_href)}">{esc(back_label)}</a>'
        "</div>"
        '<h3 class="section-title">Detalles</h3>'
        f'<dl class="detail-dl">{detail_rows(rows)}</dl>'
        f"{related}"
        "</div></div>"
        "</article>"
    )


def build_business_page(
    base_template: str, config: SiteConfig, business: Business, related: Sequence[Business] = ()
) -> str:
    root = relative_root(business.path)
    category_label = business.category or "Negocio"
    category_path = f"directorio/{business.category_slug}/"
    facts = [f"{business.name} en {category_label}."]
    if business.address:
        facts.append(f"Dirección: {business.address}.")
    if business.phone:
        facts.append(f"Tel: {business.phone}.")
    trail = [
        ("Inicio", ""),
        ("Directorio", "directorio/"),
        (category_label, category_path),
        (business.name, business.path),
    ]
    address = None
    if business.address:
        address = {
            "@type": "PostalAddress",
            "streetAddress": business.address,
            "addressLocality": config.city,
        }
    ld_business = {
        "@context": SCHEMA_CONTEXT,
        "@type": "LocalBusiness",
        "name": business.name,
        "description": business.description,
        "image": business.image,
        "url": join_url(config.site_url, business.path),
        "address": address,
        "telephone": business.phone,
        "openingHours": business.hours,
        "sameAs": [business.whatsapp] if business.whatsapp and safe_url(business.whatsapp) != "#" else None,
    }
    lead = f"<p>{esc(business.description)}</p>" if business.description else ""
    content = breadcrumb_nav(root, trail) + detail_article(
        css="detail--business",
        name=business.name,
        pill=category_label,
        image=business.image,
        lead=lead,
        whatsapp=whatsapp_link(business.whatsapp, config.whatsapp_number, f"Hola, me interesa {business.name}"),
        back_href=f"{root}/{category_path}",
        back_label="Volver al directorio",
        rows=[
            ("Nombre", business.name),
            ("Categoría", business.category),
            ("Dirección", business.address),
            ("Teléfono", business.phone),
            ("Horario", business.hours),
            ("Descripción", business.description),
            ("Sitio", business.url),
            ("WhatsApp", business.whatsapp),
        ],
        related=related_section(root, f"Más en {category_label}", related, with_address=True),
    )
    return build_document(
        base_template,
        config,
        title=f"{business.name} | {category_label} en {config.city}",
        description=" ".join(facts),
        page_path=business.path,
        content=content,
        after_main=seo_section(business.seo_md),
        structured=[ld_business, breadcrumb_ld(config, trail)],
        og_type="business.business",
        image=business.image,
    )


def offer_ld(config: SiteConfig, item: CatalogItem) -> Optional[dict]:
    if item.price_value is None:
        return None
    return {
        "@type": "Offer",
        "priceCurrency": config.currency,
        "price": format_price(item.price_value),
        "availability": "https://schema.org/InStock",
        "url": join_url(config.site_url, item.path),
    }


def build_catalog_page(
    base_template: str,
    config: SiteConfig,
    item: CatalogItem,
    related: Sequence[CatalogItem],
    kind: dict,
) -> str:
    root = relative_root(item.path)
    trail = [("Inicio", ""), (kind["section"], kind["section_href"]), (item.name, item.path)]
    ld_item = {
        "@context": SCHEMA_CONTEXT,
        "@type": kind["schema_type"],
        "name": item.name,
        "description": item.description,
        "image": item.image,
        "url": join_url(config.site_url, item.path),
        "offers": offer_ld(config, item),
        "sameAs": [item.whatsapp] if item.whatsapp and safe_url(item.whatsapp) != "#" else None,
    }
    if kind["schema_type"] == "Service":
        ld_item["areaServed"] = {"@type": "City", "name": config.city}
    lead = ""
    if item.price:
        lead += f'<p class="price-lg">{esc(item.price)}</p>'
    if item.description:
        lead += f"<p>{esc(item.description)}</p>"
    content = breadcrumb_nav(root, trail) + detail_article(
        css=kind["css"],
        name=item.name,
        pill=kind["label"],
        image=item.image,
        lead=lead,
        whatsapp=whatsapp_link(item.whatsapp, config.whatsapp_number, f"{kind['greeting']} {item.name}"),
        back_href=f"{root}/{kind['section_href']}",
        back_label=f"Volver a {kind['section'].lower()}",
        rows=[
            ("Nombre", item.name),
            ("Precio", item.price),
            ("Descripción", item.description),
            ("Imagen", item.image),
            ("URL", item.url),
            ("WhatsApp", item.whatsapp),
        ],
        related=related_section(root, kind["related"], related),
    )
    return build_document(
        base_template,
        config,
        title=f"{item.name} | {kind['label']} en {config.city}",
        description=f"{item.name}. {item.description}".strip(),
        page_path=item.path,
        content=content,
        after_main=seo_section(item.seo_md),
        structured=[ld_item, breadcrumb_ld(config, trail)],
        og_type=kind["og_type"],
        image=item.image,
    )


def build_product_page(
    base_template: str, config: SiteConfig, product: CatalogItem, related: Sequence[CatalogItem] = ()
) -> str:
    return build_catalog_page(base_template, config, product, related, PRODUCT_KIND)


def build_service_page(
    base_template: str, config: SiteConfig, service: CatalogItem, related: Sequence[CatalogItem] = ()
) -> str:
    return build_catalog_page(base_template, config, service, related, SERVICE_KIND)


def build_category_page(
    base_template: str, config: SiteConfig, category: Category, members: Sequence[Business]
) -> str:
    page_path = f"directorio/{category.slug}/"
    root = relative_root(page_path)
    trail = [("Inicio", ""), ("Directorio", "directorio/"), (category.name, page_path)]
    rows = []
    for business in members:
        address = f" — <small>{esc(business.address)}</small>" if business.address else ""
        rows.append(f'<li><a href="{esc(root)}/{esc(business.path)}">{esc(business.name)}</a>{address}</li>')
    content = (
        breadcrumb_nav(root, trail)
        + "<section>"
        f'<h1 class="section-title">{esc(category.name)}</h1>'
        f'<ul class="list-simple">{"".join(rows)}</ul>'
        f'<p><a class="btn-info" href="{esc(root)}/directorio/">Volver al directorio</a></p>'
        "</section>"
    )
    return build_document(
        base_template,
        config,
        title=f"Directorio de {category.name} en {config.city}",
        description=f"Negocios de {category.name} en {config.city}: contactos, dirección y WhatsApp.",
        page_path=page_path,
        content=content,
        structured=[
            item_list_ld(config, [(business.name, business.path) for business in members]),
            breadcrumb_ld(config, trail),
        ],
        image=category.icon,
    )


def build_directory_page(base_template: str, config: SiteConfig, categories: Sequence[Category]) -> str:
    page_path = "directorio/"
    root = relative_root(page_path)
    trail = [("Inicio", ""), ("Directorio", page_path)]
    rows = []
    for category in categories:
        icon = ""
        if category.icon:
            icon = (
                f'<img src="{esc(category.icon)}" alt="{esc(category.name)}"'
                ' width="28" height="28" loading="lazy" decoding="async" /> '
            )
        if category.count:
            label = f'<a href="{esc(root)}/directorio/{esc(category.slug)}/">{esc(category.name)}</a>'
        else:
            label = f"<span>{esc(category.name)}</span>"
        rows.append(f'<li class="cat-item">{icon}{label} <small>({category.count})</small></li>')
    content = (
        breadcrumb_nav(root, trail)
        + "<section>"
        '<h1 class="section-title">Directorio por categorías</h1>'
        f'<ul class="list-simple cats">{"".join(rows)}</ul>'
        f'<p><a class="btn-info" href="{esc(root)}/index.html#directorio">Volver</a></p>'
        "</section>"
    )
    listed = [(category.name, f"directorio/{category.slug}/") for category in categories if category.count]
    return build_document(
        base_template,
        config,
        title=f"Directorio de categorías en {config.city}",
        description=f"Explora negocios por categoría en {config.city}: contacto, dirección y WhatsApp.",
        page_path=page_path,
        content=content,
        structured=[item_list_ld(config, listed), breadcrumb_ld(config, trail)],
    )


def render_sitemap(urls: Iterable[str]) -> str:
    items = []
    seen = set()
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        items.append(f"  <url><loc>{html.escape(url)}</loc></url>")
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *items,
            "</urlset>",
            "",
        ]
    )


def render_robots(site_url: str) -> str:
    return "\n".join(["User-agent: *", "Allow: /", f"Sitemap: {join_url(site_url, 'sitemap.xml')}", ""])
