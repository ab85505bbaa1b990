# Importing the models registers them with ``Base.metadata`` so
# ``create_all`` knows about every table.
from .catalog import Category, Item, Subcategory
from .sale import Sale

__all__ = ["Category", "Subcategory", "Item", "Sale"]
