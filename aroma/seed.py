from __future__ import annotations

import argparse
import logging

from .config import get_settings, setup_logging
from .store import Store, open_store
from .tables import create_table

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"key": "burgers", "name": "Burgers", "icon": "🍔", "sort_order": 1},
    {"key": "sides", "name": "Sides", "icon": "🍟", "sort_order": 2},
    {"key": "drinks", "name": "Drinks", "icon": "🥤", "sort_order": 3},
]

DEFAULT_MENU_ITEMS = {
    "burgers": [
        {
            "name": "Classic Burger",
            "description": "Juicy grilled beef patty with cheese and lettuce",
            "price": 8.5,
            "image_url": "https://picsum.photos/id/1011/900/540",
            "nutrition": "Proteins: 25g, Carbs: 40g, Fats: 20g",
            "ingredients": "Beef, Cheese, Lettuce, Tomato, Bun",
            "allergies": "Gluten, Dairy",
            "prep_time": "10 min",
            "sort_order": 1,
        },
        {
            "name": "Veggie Burger",
            "description": "Grilled veggie patty with avocado",
            "price": 7.0,
            "image_url": "https://picsum.photos/id/1012/900/540",
            "nutrition": "Proteins: 15g, Carbs: 35g, Fats: 10g",
            "ingredients": "Veggie patty, Avocado, Bun",
            "allergies": "Gluten",
            "prep_time": "8 min",
            "sort_order": 2,
        },
        {
            "name": "Chicken Burger",
            "description": "Grilled chicken breast with fresh vegetables",
            "price": 9.5,
            "image_url": "https://picsum.photos/id/1015/900/540",
            "nutrition": "Proteins: 30g, Carbs: 35g, Fats: 12g",
            "ingredients": "Chicken, Lettuce, Tomato, Bun",
            "allergies": "Gluten",
            "prep_time": "12 min",
            "sort_order": 3,
        },
    ],
    "sides": [
        {
            "name": "French Fries",
            "description": "Crispy golden fries",
            "price": 3.0,
            "image_url": "https://picsum.photos/id/1013/900/540",
            "nutrition": "Proteins: 3g, Carbs: 40g, Fats: 15g",
            "ingredients": "Potatoes, Oil, Salt",
            "allergies": "None",
            "prep_time": "5 min",
            "sort_order": 1,
        },
        {
            "name": "Onion Rings",
            "description": "Crispy battered onion rings",
            "price": 4.5,
            "image_url": "https://picsum.photos/id/1016/900/540",
            "nutrition": "Proteins: 2g, Carbs: 35g, Fats: 18g",
            "ingredients": "Onions, Flour, Oil",
            "allergies": "Gluten",
            "prep_time": "6 min",
            "sort_order": 2,
        },
    ],
    "drinks": [
        {
            "name": "Cola",
            "description": "Chilled refreshing drink",
            "price": 2.0,
            "image_url": "https://picsum.photos/id/1014/900/540",
            "nutrition": "Proteins: 0g, Carbs: 40g, Fats: 0g",
            "ingredients": "Water, Sugar, Flavorings",
            "allergies": "None",
            "prep_time": "1 min",
            "sort_order": 1,
        },
        {
            "name": "Orange Juice",
            "description": "Fresh squeezed orange juice",
            "price": 3.5,
            "image_url": "https://picsum.photos/id/1017/900/540",
            "nutrition": "Proteins: 1g, Carbs: 35g, Fats: 0g",
            "ingredients": "Fresh oranges",
            "allergies": "None",
            "prep_time": "2 min",
            "sort_order": 2,
        },
    ],
}

DEFAULT_TABLE_COUNT = 10


def ensure_seed_data(store: Store) -> bool:
    """Seed the default menu and tables into an empty catalog."""
    if store.list_categories():
        return False
    for category_data in DEFAULT_CATEGORIES:
        category = store.create_category(category_data)
        for item_data in DEFAULT_MENU_ITEMS[category.key]:
            store.create_item({**item_data, "category_id": category.id})
    if not store.list_tables():
        for number in range(1, DEFAULT_TABLE_COUNT + 1):
            create_table(store, str(number))
    logger.info(
        "Seeded %d categories, %d items",
        len(DEFAULT_CATEGORIES),
        sum(len(items) for items in DEFAULT_MENU_ITEMS.values()),
    )
    return True


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Migrate and seed the ordering database.")
    parser.add_argument("--reset", action="store_true", help="drop all data before seeding")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    store = open_store(settings)
    try:
        if args.reset:
            store.reset()
            ensure_seed_data(store)
            print("Database reset and seeded.")
        else:
            store.init()
            ensure_seed_data(store)
            print("Database migrated and seeded if needed.")
    finally:
        store.close()


if __name__ == "__main__":
    main()
