"""Sample dishes used to seed an empty catalog."""

from __future__ import annotations

SAMPLE_MENU: list[dict] = [
    {
        "item_key": "paneer_tikka",
        "name": "Paneer Tikka Masala",
        "price": 255,
        "category": "Main",
        "description": "Cottage cheese in rich gravy",
    },
    {
        "item_key": "garlic_fried_rice",
        "name": "Garlic Fried Rice",
        "price": 180,
        "category": "Rice",
        "description": "Aromatic rice with garlic",
    },
    {
        "item_key": "veg_biryani",
        "name": "Veg Biryani",
        "price": 220,
        "category": "Rice",
        "description": "Fragrant rice with vegetables",
    },
    {
        "item_key": "butter_chicken",
        "name": "Butter Chicken",
        "price": 285,
        "category": "Main",
        "description": "Tender chicken in creamy tomato sauce",
    },
    {
        "item_key": "dal_makhani",
        "name": "Dal Makhani",
        "price": 200,
        "category": "Main",
        "description": "Creamy black lentil curry",
    },
    {
        "item_key": "naan",
        "name": "Naan",
        "price": 60,
        "category": "Bread",
        "description": "Traditional Indian flatbread",
    },
]
