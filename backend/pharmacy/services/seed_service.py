# Overview: Idempotent demo data (admin account, default categories, sample products).

from __future__ import annotations

from decimal import Decimal

from ..domain import Role
from .auth_service import AuthService
from .catalog_service import CatalogService

DEFAULT_CATEGORIES = [
    ("Cardiovascular", "Heart and blood pressure medications"),
    ("Antibiotics", "Bacterial infection treatments"),
    ("Pain Relief", "Pain management and anti-inflammatory drugs"),
    ("Vitamins", "Vitamin and mineral supplements"),
    ("Diabetes", "Diabetes management medications"),
    ("Respiratory", "Respiratory and allergy medications"),
]

SAMPLE_PRODUCTS = [
    {
        "name": "Aspirin 100mg",
        "description": "Low-dose aspirin for cardiovascular protection",
        "price": Decimal("25.99"),
        "stock_quantity": 500,
        "brand": "AL-MAWRID",
        "category": "Pain Relief",
    },
    {
        "name": "Metformin 500mg",
        "description": "Oral diabetes medication",
        "price": Decimal("45.50"),
        "stock_quantity": 300,
        "brand": "AL-MAWRID",
        "category": "Diabetes",
    },
    {
        "name": "Vitamin D3 1000 IU",
        "description": "Vitamin D supplement for bone health",
        "price": Decimal("35.00"),
        "stock_quantity": 800,
        "brand": "AL-MAWRID",
        "category": "Vitamins",
    },
]


def seed_demo_data(
    auth: AuthService,
    catalog: CatalogService,
    *,
    admin_email: str,
    admin_password: str,
) -> dict:
    """
    Create whatever part of the demo data is missing.

    Existing records (matched by email / name) are left untouched.
    Returns counts of what was created.
    """
    created = {"users": 0, "categories": 0, "products": 0}

    if not auth.get_user_by_email(admin_email).ok:
        auth.register(
            email=admin_email,
            password=admin_password,
            full_name="Admin User",
            role=Role.ADMIN,
        ).unwrap()
        created["users"] += 1

    categories = {c.name: c for c in catalog.list_categories(include_disabled=True)}
    for name, description in DEFAULT_CATEGORIES:
        if name not in categories:
            categories[name] = catalog.create_category({"name": name, "description": description}).unwrap()
            created["categories"] += 1

    existing = {p.name for p in catalog.list_products(include_disabled=True)}
    for sample in SAMPLE_PRODUCTS:
        if sample["name"] in existing:
            continue
        fields = {k: v for k, v in sample.items() if k != "category"}
        fields["category_id"] = categories[sample["category"]].id
        catalog.create_product(fields).unwrap()
        created["products"] += 1

    return created
