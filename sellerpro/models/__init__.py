import importlib

from sellerpro.models.activity import Activity
from sellerpro.models.preference import Preference
from sellerpro.models.product import Product
from sellerpro.models.warehouse import Warehouse


def import_all_models() -> None:
    for module_name in (
        "sellerpro.models.activity",
        "sellerpro.models.preference",
        "sellerpro.models.product",
        "sellerpro.models.warehouse",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Activity",
    "Preference",
    "Product",
    "Warehouse",
    "import_all_models",
]
