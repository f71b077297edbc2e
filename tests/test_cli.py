from __future__ import annotations

import json
import logging
import re
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from conftest import BUSINESSES, PRODUCTS, write_json

from dirsite.cli import generate, main

LOC_RE = re.compile(r"<loc>(.*?)</loc>")


def snapshot(root: Path) -> dict[str, bytes]:
    return {path.relative_to(root).as_posix(): path.read_bytes() for path in sorted(root.rglob("*")) if path.is_file()}


def test_generates_expected_tree(site_dir, config):
    result = generate(site_dir, config)

    assert result.pages == [
        "directorio/comida-rapida/el-buen-sabor/index.html",
        "directorio/comida-rapida/pizzeria-napoli/index.html",
        "directorio/ferreteria/central/index.html",
        "directorio/comida-rapida/index.html",
        "directorio/ferreteria/index.html",
        "directorio/index.html",
        "productos/laptop/index.html",
        "productos/smartphone/index.html",
        "servicios/reparacion-pc/index.html",
        "servicios/instalacion-de-software/index.html",
    ]
    for rel in result.pages:
        assert (site_dir / rel).is_file()
    assert result.warnings == []

    page = (site_dir / "directorio/comida-rapida/el-buen-sabor/index.html").read_text(encoding="utf-8")
    assert "https://directorio.example.com/directorio/comida-rapida/el-buen-sabor/" in page
    assert "Pizzería Napoli" in page

    directory = (site_dir / "directorio/index.html").read_text(encoding="utf-8")
    assert '<a href="../directorio/comida-rapida/">Comida Rápida</a> <small>(2)</small>' in directory
    assert "<span>Panaderías</span> <small>(0)</small>" in directory
    assert '<a href="../directorio/ferreteria/">Ferreterías</a> <small>(1)</small>' in directory

    product = (site_dir / "productos/laptop/index.html").read_text(encoding="utf-8")
    assert '"price": "1200000"' in product


def test_sitemap_and_robots(site_dir, config):
    result = generate(site_dir, config)
    sitemap = (site_dir / "sitemap.xml").read_text(encoding="utf-8")
    locs = LOC_RE.findall(sitemap)
    assert len(locs) == len(result.pages) + 2
    assert len(set(locs)) == len(locs)
    assert locs[:2] == ["https://directorio.example.com/", "https://directorio.example.com/index.html"]
    assert "https://directorio.example.com/servicios/reparacion-pc/" in locs
    robots = (site_dir / "robots.txt").read_text(encoding="utf-8")
    assert "Sitemap: https://directorio.example.com/sitemap.xml" in robots


def test_missing_and_empty_collections(tmp_path, config):
    write_json(tmp_path / "negocios.json", BUSINESSES[:1])
    write_json(tmp_path / "productos.json", [])
    result = generate(tmp_path, config)
    assert not (tmp_path / "productos").exists()
    assert not (tmp_path / "servicios").exists()
    assert (tmp_path / "directorio/index.html").is_file()
    assert len(result.pages) == 3


def test_nothing_to_read(tmp_path, config):
    result = generate(tmp_path, config)
    assert result.pages == ["directorio/index.html"]
    assert len(LOC_RE.findall((tmp_path / "sitemap.xml").read_text(encoding="utf-8"))) == 3


def test_malformed_json_is_a_warning(tmp_path, config, caplog):
    (tmp_path / "productos.json").write_text("{ not json", encoding="utf-8")
    write_json(tmp_path / "servicios.json", [{"precio": "$5"}])
    with caplog.at_level(logging.WARNING):
        result = generate(tmp_path, config)
    assert not (tmp_path / "productos").exists()
    assert len(result.warnings) == 2
    assert "productos.json" in caplog.text
    assert "servicios.json[0] has no name" in caplog.text


def test_regeneration_is_byte_identical(site_dir, config):
    generate(site_dir, config)
    first = snapshot(site_dir)
    generate(site_dir, config)
    assert snapshot(site_dir) == first


def test_slug_collisions_get_suffixes(tmp_path, config):
    write_json(tmp_path / "productos.json", [{"nombre": "Café"}, {"nombre": "cafe"}])
    result = generate(tmp_path, config)
    assert "productos/cafe/index.html" in result.pages
    assert "productos/cafe-2/index.html" in result.pages
    assert any("productos/cafe/" in message for message in result.warnings)


def test_stale_pages_are_pruned(site_dir, config):
    generate(site_dir, config)
    write_json(site_dir / "productos.json", PRODUCTS[:1])
    write_json(site_dir / "negocios.json", BUSINESSES[:2])
    result = generate(site_dir, config)
    assert result.pruned == [
        "directorio/ferreteria/central/index.html",
        "directorio/ferreteria/index.html",
        "productos/smartphone/index.html",
    ]
    assert not (site_dir / "productos/smartphone").exists()
    assert not (site_dir / "directorio/ferreteria").exists()
    assert (site_dir / "productos/laptop/index.html").is_file()


def test_pruning_can_be_disabled(site_dir, config):
    generate(site_dir, config)
    write_json(site_dir / "productos.json", [])
    result = generate(site_dir, replace(config, prune=False))
    assert result.pruned == []
    assert (site_dir / "productos/smartphone/index.html").is_file()


def test_pages_kept_by_no_prune_are_pruned_later(site_dir, config):
    generate(site_dir, config)
    write_json(site_dir / "productos.json", PRODUCTS[:1])
    generate(site_dir, replace(config, prune=False))
    lock = json.loads((site_dir / "build.lock.json").read_text(encoding="utf-8"))
    assert "productos/smartphone/index.html" in lock["pages"]

    result = generate(site_dir, config)
    assert result.pruned == ["productos/smartphone/index.html"]
    assert not (site_dir / "productos/smartphone").exists()
    lock = json.loads((site_dir / "build.lock.json").read_text(encoding="utf-8"))
    assert "productos/smartphone/index.html" not in lock["pages"]


def test_no_prune_forgets_pages_deleted_by_hand(site_dir, config):
    generate(site_dir, config)
    write_json(site_dir / "productos.json", PRODUCTS[:1])
    (site_dir / "productos/smartphone/index.html").unlink()
    generate(site_dir, replace(config, prune=False))
    lock = json.loads((site_dir / "build.lock.json").read_text(encoding="utf-8"))
    assert "productos/smartphone/index.html" not in lock["pages"]


def test_write_errors_propagate(site_dir, config):
    (site_dir / "productos").write_text("not a directory", encoding="utf-8")
    with pytest.raises(OSError):
        generate(site_dir, config)
    assert (site_dir / "directorio/comida-rapida/el-buen-sabor/index.html").is_file()
    assert (site_dir / "directorio/index.html").is_file()
    assert not (site_dir / "build.lock.json").exists()


def test_pruning_ignores_unknown_files(site_dir, config):
    (site_dir / "productos").mkdir()
    (site_dir / "productos/manual.html").write_text("mine", encoding="utf-8")
    generate(site_dir, config)
    write_json(site_dir / "productos.json", [])
    generate(site_dir, config)
    assert (site_dir / "productos/manual.html").read_text(encoding="utf-8") == "mine"


def test_separate_data_and_output_dirs(tmp_path, config):
    data = tmp_path / "data"
    data.mkdir()
    write_json(data / "productos.json", PRODUCTS[:1])
    generate(tmp_path, replace(config, data_dir="data", output_dir="public"))
    assert (tmp_path / "public/productos/laptop/index.html").is_file()
    assert (tmp_path / "public/sitemap.xml").is_file()


def test_custom_template_dir(tmp_path, config):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "base.html").write_text("<h1>{{title}}</h1>{{content}}", encoding="utf-8")
    generate(tmp_path, replace(config, templates_dir="templates"))
    assert (tmp_path / "directorio/index.html").read_text(encoding="utf-8").startswith(
        "<h1>Directorio de categorías en Montería</h1>"
    )


def test_main_uses_site_url_from_environment(site_dir, monkeypatch, capsys):
    monkeypatch.chdir(site_dir)
    monkeypatch.setenv("SITE_URL", "https://env.example.com/")
    monkeypatch.setattr(sys, "argv", ["dirsite", "--config", "missing.toml"])
    main()
    out = capsys.readouterr().out
    assert "Build completed in" in out
    assert "10 pages generated" in out
    assert "https://env.example.com/productos/laptop/" in (site_dir / "sitemap.xml").read_text(encoding="utf-8")


def test_main_reads_config_file(site_dir, monkeypatch):
    (site_dir / "site.toml").write_text('site_url = "https://toml.example.com"\ncity = "Cereté"\n', encoding="utf-8")
    monkeypatch.chdir(site_dir)
    monkeypatch.delenv("SITE_URL", raising=False)
    monkeypatch.setattr(sys, "argv", ["dirsite"])
    main()
    page = (site_dir / "productos/laptop/index.html").read_text(encoding="utf-8")
    assert "https://toml.example.com/productos/laptop/" in page
    assert "Producto en Cereté" in page


def test_command_line_overrides_environment(site_dir, monkeypatch):
    monkeypatch.chdir(site_dir)
    monkeypatch.setenv("SITE_URL", "https://env.example.com")
    monkeypatch.setattr(sys, "argv", ["dirsite", "--site-url", "https://cli.example.com/", "--no-prune"])
    main()
    assert "https://cli.example.com/" in (site_dir / "sitemap.xml").read_text(encoding="utf-8")
