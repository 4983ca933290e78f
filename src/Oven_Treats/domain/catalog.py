"""
Oven_Treats.domain.catalog

Built-in product catalog. Used on first run and by BakeryStore.reset_data().
"""

from __future__ import annotations

from dataclasses import replace
from typing import List

from Oven_Treats.domain.models import Product


_IMG = "https://images.unsplash.com/{}?w=400&h=300&fit=crop"


DEFAULT_PRODUCTS: List[Product] = [
    # Breads
    Product("1", "Artisan Sourdough", "Traditional sourdough with crispy crust and tangy flavor",
            8.50, "breads", _IMG.format("photo-1549931319-a545dcf3bc73")),
    Product("2", "French Baguette", "Classic French baguette, perfect for sandwiches",
            4.25, "breads", _IMG.format("photo-1534620808146-d33bb39128b2")),
    Product("3", "Whole Wheat Loaf", "Healthy whole wheat bread, soft and nutritious",
            6.75, "breads", _IMG.format("photo-1586444248902-2f64eddc13df")),

    # Pastries
    Product("4", "Butter Croissant", "Flaky, buttery croissant made with French technique",
            3.50, "pastries", _IMG.format("photo-1555507036-ab794f4ade0a")),
    Product("5", "Pain au Chocolat", "Croissant pastry filled with rich dark chocolate",
            4.25, "pastries", _IMG.format("photo-1578985545062-69928b1d9587")),
    Product("6", "Apple Danish", "Sweet pastry with cinnamon apples and glaze",
            4.75, "pastries", _IMG.format("photo-1571115764595-644a1f56a55c")),

    # Cakes
    Product("7", "Chocolate Layer Cake", "Rich chocolate cake with chocolate buttercream",
            28.00, "cakes", _IMG.format("photo-1578985545062-69928b1d9587")),
    Product("8", "Red Velvet Cake", "Classic red velvet with cream cheese frosting",
            32.00, "cakes", _IMG.format("photo-1464349095431-e9a21285b5f3")),
    Product("9", "Lemon Drizzle Cake", "Moist lemon cake with tangy lemon glaze",
            24.00, "cakes", _IMG.format("photo-1563729784474-d77dbb933a9e")),

    # Cookies
    Product("10", "Chocolate Chip Cookies", "Classic cookies with premium chocolate chips",
            2.50, "cookies", _IMG.format("photo-1499636136210-6f4ee915583e")),
    Product("11", "Oatmeal Raisin", "Chewy oatmeal cookies with plump raisins",
            2.25, "cookies", _IMG.format("photo-1558961363-fa8fdf82db35")),
    Product("12", "Sugar Cookies", "Soft sugar cookies with vanilla icing",
            2.75, "cookies", _IMG.format("photo-1606313564200-e75d5e30476c")),
]


# (id, display name) – "all" is the UI's no-filter entry
CATEGORIES = (
    ("all", "All Items"),
    ("breads", "Breads"),
    ("pastries", "Pastries"),
    ("cakes", "Cakes"),
    ("cookies", "Cookies"),
)


def default_products() -> List[Product]:
    """
    Fresh copies of the built-in catalog (callers may mutate them).
    """
    return [replace(p) for p in DEFAULT_PRODUCTS]
