"""Store catalogue — stock locations that deliveries ship from or to."""

STORES = {
    "60835": "CD",
    "24471": "9 de Julio",
    "31312": "Cárcano",
    "70749": "Segunda Selección",
}


def is_known_store(store_id: str | None) -> bool:
    return bool(store_id) and store_id in STORES


def store_label(store_id: str | None) -> str:
    if not store_id:
        return ""
    return STORES.get(store_id, store_id)
