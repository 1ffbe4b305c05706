"""Preiskonfiguration und Preisberechnung für Torten"""

from decimal import Decimal
from typing import Dict, Iterable, Optional

from .models import SizeCategory, size_category_for_diameter

PRICE_CONFIG = {
    "tiers": {
        SizeCategory.MINI: {"price": Decimal("45"), "min_cm": 10, "max_cm": 14, "label": "Mini"},
        SizeCategory.NORMAL: {"price": Decimal("55"), "min_cm": 15, "max_cm": 20, "label": "Normal"},
        SizeCategory.LARGE: {"price": Decimal("80"), "min_cm": 21, "max_cm": 24, "label": "Groß"},
    },
    "extras": {
        "schokoboden": {"price": Decimal("5"), "label": "Schokoboden"},
        "vanillecreme": {"price": Decimal("5"), "label": "Vanillecreme"},
        "nutella": {"price": Decimal("5"), "label": "Nutella"},
        "pistaziencreme": {"price": Decimal("7"), "label": "Pistaziencreme"},
        "buttercreme": {"price": Decimal("10"), "label": "Buttercreme"},
        "fruchtfuellung": {"price": Decimal("8"), "label": "Fruchtfüllung"},
        "obst": {"price": Decimal("10"), "label": "Frisches Obst"},
        "deko": {"price": Decimal("18"), "label": "Deko"},
    },
    "mehrstoeckig": {"price_per_tier": Decimal("30"), "min_tiers": 2, "max_tiers": 3},
    "lieferung": {
        "abholung": {"price": Decimal("0"), "label": "Abholung"},
        "20km": {"price": Decimal("10"), "label": "Lieferung bis 20 km"},
        "40km": {"price": Decimal("20"), "label": "Lieferung bis 40 km"},
    },
    "diameter": {"min": 10, "max": 24},
}


def calculate_price(diameter_cm: int, extras: Iterable[str] = (),
                    stockwerke: Optional[int] = None, lieferung: str = "abholung") -> Dict:
    """
    Berechne den Gesamtpreis einer Torte

    Returns:
        dict mit kategorie, basispreis, extras, mehrstoeckig, lieferung, gesamtpreis

    Raises:
        ValueError: Durchmesser, Extra, Stockwerke oder Lieferart unbekannt/außerhalb
    """
    limits = PRICE_CONFIG["diameter"]
    if not limits["min"] <= diameter_cm <= limits["max"]:
        raise ValueError(f"Durchmesser muss zwischen {limits['min']} und {limits['max']} cm liegen")

    kategorie = size_category_for_diameter(diameter_cm)
    basispreis = PRICE_CONFIG["tiers"][kategorie]["price"]

    extras_preis = Decimal("0")
    for extra in extras:
        if extra not in PRICE_CONFIG["extras"]:
            raise ValueError(f"Unbekanntes Extra: {extra}")
        extras_preis += PRICE_CONFIG["extras"][extra]["price"]

    mehrstoeckig_preis = Decimal("0")
    if stockwerke:
        tiers = PRICE_CONFIG["mehrstoeckig"]
        if not tiers["min_tiers"] <= stockwerke <= tiers["max_tiers"]:
            raise ValueError(f"Stockwerke müssen zwischen {tiers['min_tiers']} und {tiers['max_tiers']} liegen")
        mehrstoeckig_preis = tiers["price_per_tier"] * (stockwerke - 1)

    if lieferung not in PRICE_CONFIG["lieferung"]:
        raise ValueError(f"Unbekannte Lieferart: {lieferung}")
    lieferpreis = PRICE_CONFIG["lieferung"][lieferung]["price"]

    gesamt = basispreis + extras_preis + mehrstoeckig_preis + lieferpreis
    return {
        "kategorie": kategorie,
        "basispreis": basispreis,
        "extras": extras_preis,
        "mehrstoeckig": mehrstoeckig_preis,
        "lieferung": lieferpreis,
        "gesamtpreis": gesamt.quantize(Decimal("0.01")),
    }


def extra_labels(extras: Iterable[str]) -> str:
    labels = [PRICE_CONFIG["extras"].get(e, {}).get("label", e) for e in extras]
    return ", ".join(labels) if labels else "Keine"
