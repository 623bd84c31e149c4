from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class SeedCatalogData:
    category_name: str = "Menu"
    products: list[tuple[str, str, Decimal]] = field(
        default_factory=lambda: [
            ("Classic Burger", "Beef patty, cheese, lettuce and tomato", Decimal("29.90")),
            ("French Fries", "Crispy potato fries", Decimal("12.50")),
            ("Soda", "350ml can", Decimal("6.00")),
        ]
    )


seed_catalog_data = SeedCatalogData()
