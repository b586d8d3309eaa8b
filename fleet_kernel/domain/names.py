"""Entity name normalization shared by models and the import resolver."""


def name_key(name: str) -> str:
    """
    Case-insensitive lookup key for an entity name.

    Collapses runs of whitespace and case-folds, so "maria", "Maria" and
    "  MARIA " share one key.
    """
    return " ".join(name.split()).casefold()
