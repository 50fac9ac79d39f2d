import logging
import random
import time

from backend.models import (
    Platform,
    ScrapedProduct,
    ScrapeMethod,
    ScrapeResult,
    SiteMetadata,
)

logger = logging.getLogger(__name__)

DEMO_PRODUCT_NAMES: dict[str, list[str]] = {
    "fashion": [
        "T-shirt Premium", "Jean Skinny", "Sneakers Tendance",
        "Veste d'Hiver", "Robe d'Été", "Sac en Cuir",
    ],
    "electronics": [
        "Smartphone Pro", "Casque Bluetooth", "Tablette HD",
        "Montre Connectée", "Enceinte Portable", "Chargeur Sans Fil",
    ],
    "beauty": [
        "Crème Hydratante", "Rouge à Lèvres", "Parfum Elite",
        "Masque Visage", "Sérum Éclat", "Palette Fards",
    ],
    "home": [
        "Coussin Design", "Lampe LED", "Tapis Moderne",
        "Cadre Photo", "Bougie Parfumée", "Vase Céramique",
    ],
    "sports": [
        "Chaussures Running", "T-shirt Sport", "Sac de Sport",
        "Montre Fitness", "Tapis de Yoga", "Gourde Isotherme",
    ],
}
DEFAULT_CATEGORY = "electronics"


def get_fallback_data(
    url: str, category: str = "", error: str | None = None
) -> ScrapeResult:
    """Fabricate demo products so callers always get something to display.

    Every product is flagged ``is_demo`` and the result ``failed``, so the
    placeholder data can be told apart from a real scrape.
    """
    logger.warning("Using demo data for %s (%s)", url, error or "no reason given")

    names = DEMO_PRODUCT_NAMES.get(category, DEMO_PRODUCT_NAMES[DEFAULT_CATEGORY])
    stamp = int(time.time() * 1000)
    products = [
        ScrapedProduct(
            id=f"demo_{stamp}_{i}",
            name=name,
            description=f"{name} de qualité premium avec livraison rapide",
            price=float(random.randint(30, 229)),
            image=f"https://picsum.photos/400/400?random={stamp}_{i}",
            url=url,
            category=category or "general",
            is_demo=True,
        )
        for i, name in enumerate(names)
    ]

    return ScrapeResult(
        products=products,
        total_found=len(products),
        method=ScrapeMethod.FALLBACK,
        metadata=SiteMetadata(
            title="Site E-commerce de Démonstration",
            description="Données de démonstration pour test",
            site_name="Demo Store",
        ),
        source_url=url,
        platform=Platform.GENERIC,
        failed=True,
        error=error,
    )
