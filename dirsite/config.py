from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

try:
    import tomllib as toml
except ImportError:
    try:
        import tomli as toml
    except ImportError:  # pragma: no cover - optional dependency
        toml = None

try:
    import yaml
except ImportError:  # pragma: no cover - optional dependency
    yaml = None

DEFAULT_SITE_URL = "http://localhost"


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        if toml is None:
            print("TOML config requires tomllib (Python 3.11+) or tomli.", file=sys.stderr)
            sys.exit(1)
        try:
            data = toml.loads(text)
        except Exception as exc:  # pragma: no cover - depends on parser
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if not isinstance(data, dict):
            print(f"TOML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        if yaml is None:
            print("YAML config requires PyYAML.", file=sys.stderr)
            sys.exit(1)
        try:
            data = yaml.safe_load(text)
        except Exception as exc:  # pragma: no cover - depends on parser
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def normalize_site_url(value: Optional[str]) -> str:
    value = (value or "").strip().rstrip("/")
    return value or DEFAULT_SITE_URL


@dataclass(frozen=True)
class SiteConfig:
    site_url: str = DEFAULT_SITE_URL
    site_name: str = "Directorio Montería"
    city: str = "Montería"
    lang: str = "es"
    currency: str = "COP"
    whatsapp_number: str = "573000000000"
    og_image: str = "/og-image.png"
    stylesheet: str = "styles.css"
    related_limit: int = 5
    data_dir: str = "."
    output_dir: str = "."
    templates_dir: str = ""
    prune: bool = True
    lock_file: str = "build.lock.json"

    def __post_init__(self) -> None:
        object.__setattr__(self, "site_url", normalize_site_url(self.site_url))

    @classmethod
    def from_args(cls, args: object) -> "SiteConfig":
        return cls(
            site_url=args.site_url,
            site_name=args.site_name,
            city=args.city,
            lang=args.lang,
            currency=args.currency,
            whatsapp_number=args.whatsapp_number,
            og_image=args.og_image,
            stylesheet=args.stylesheet,
            related_limit=max(0, int(args.related_limit)),
            data_dir=args.data,
            output_dir=args.output,
            templates_dir=args.templates,
            prune=args.prune,
            lock_file=args.lock_file,
        )
