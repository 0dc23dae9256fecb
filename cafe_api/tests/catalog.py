"""Menu, tables and promos shared by the fake and SQLite-backed tests."""

from datetime import datetime, timedelta, timezone

_now = datetime.now(timezone.utc)

MENU = [
    {
        "id": "kopi-susu",
        "name": "Kopi Susu Gula Aren",
        "base_price": 25000,
        "customizations": {
            "size": {"regular": 0, "large": 5000},
            "extra": {"shot": 8000, "oat_milk": 7000},
        },
    },
    {"id": "nasi-goreng", "name": "Nasi Goreng Kampung", "base_price": 50000},
    {"id": "air-mineral", "name": "Air Mineral", "base_price": 500},
    {
        "id": "pisang-goreng",
        "name": "Pisang Goreng",
        "base_price": 15000,
        "is_available": False,
    },
]

TABLES = [
    {"id": "tbl-garden-1", "table_number": "12"},
    {"id": "tbl-indoor-7", "table_number": "7"},
]

PROMOS = [
    {
        "id": "promo-hemat",
        "code": "HEMAT10",
        "promo_type": "percentage",
        "discount_value": 10,
        "max_discount_amount": 5000,
    },
    {
        "id": "promo-potong",
        "code": "POTONG500",
        "promo_type": "fixed_amount",
        "discount_value": 500,
    },
    {
        "id": "promo-min",
        "code": "MIN100K",
        "promo_type": "fixed_amount",
        "discount_value": 10000,
        "min_purchase_amount": 100000,
    },
    {
        "id": "promo-last",
        "code": "LASTONE",
        "promo_type": "percentage",
        "discount_value": 20,
        "max_uses_total": 5,
        "current_uses": 4,
    },
    {
        "id": "promo-habis",
        "code": "HABIS",
        "promo_type": "fixed_amount",
        "discount_value": 1000,
        "max_uses_total": 3,
        "current_uses": 3,
    },
    {
        "id": "promo-lewat",
        "code": "LEWAT",
        "promo_type": "fixed_amount",
        "discount_value": 1000,
        "valid_until": _now - timedelta(days=1),
    },
    {
        "id": "promo-off",
        "code": "NONAKTIF",
        "promo_type": "fixed_amount",
        "discount_value": 1000,
        "is_active": False,
    },
]
