"""Shared pytest fixtures and configuration for all tests."""

import json
import os
from pathlib import Path
from typing import Any

import pytest

# Keep the entry point modules from wiring real dependencies at import time
os.environ.setdefault("ENVIRONMENT", "test")

from menu_view_service.models.menu_models import CategoryKey  # noqa: E402
from menu_view_service.sources.memory_source import InMemoryDocumentSource  # noqa: E402


@pytest.fixture
def seed_data() -> dict[str, Any]:
    """Fixture providing nested seed data for three restaurants and one template."""
    return {
        "restaurants": {
            "rest_1": {
                "slug": "cafe-bella-vista",
                "name": "Café Bella Vista",
                "isActive": True,
                "currency": "COP",
                "templateId": "template-elegant",
                "contact": {"whatsapp": "+573001234567", "instagram": "@bellavista"},
                "schedule": {
                    "sunday": "closed",
                    "monday": "08:00-18:00",
                    "friday": "08:00-22:00",
                },
                "categories": {
                    "cat_bebidas": {
                        "name": "Bebidas",
                        "order": 2,
                        "items": {
                            "item_cafe": {
                                "name": "Café americano",
                                "description": "Café de origen",
                                "price": 3500,
                                "order": 1,
                            },
                            "item_jugo": {
                                "name": "Jugo natural",
                                "price": 6000,
                                "order": 2,
                                "active": False,
                            },
                        },
                    },
                    "cat_postres": {
                        "name": "Postres",
                        "order": 1,
                        "active": True,
                        "items": {
                            "item_tiramisu": {"name": "Tiramisú", "price": 12000},
                        },
                    },
                    "cat_oculta": {
                        "name": "Temporada",
                        "order": 0,
                        "active": False,
                        "items": {
                            "item_natilla": {"name": "Natilla", "price": 5000},
                        },
                    },
                },
            },
            "rest_2": {
                "slug": "la-terraza",
                "name": "La Terraza",
                "isActive": False,
                "templateId": "template-christmas",
            },
            "rest_3": {
                "slug": "el-fogon",
                "name": "El Fogón",
                "isActive": True,
                "currency": "USD",
                "templateId": "Promo de Navidad",
            },
        },
        "templates": {
            "template-elegant": {
                "name": "Elegante",
                "component": "elegant",
                "keywords": ["elegante", "elegant"],
                "description": "Negro, blanco y dorado",
            },
        },
    }


@pytest.fixture
def memory_source(seed_data: dict[str, Any]) -> InMemoryDocumentSource:
    """Fixture providing an in-memory source loaded with the seed data."""
    source = InMemoryDocumentSource()
    source.load_seed(seed_data)
    return source


@pytest.fixture
def seed_file(tmp_path: Path, seed_data: dict[str, Any]) -> Path:
    """Fixture writing the seed data to a JSON file."""
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(seed_data, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def bebidas_key() -> CategoryKey:
    """Fixture providing the key of the drinks category of rest_1."""
    return CategoryKey("rest_1", "cat_bebidas")
