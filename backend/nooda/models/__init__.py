from .catalog import (
    ProductCategory, Component, Product, RecipeEntry,
    PROCESS_PRODUCTION, PROCESS_SALE, PROCESS_TYPES,
)
from .activity import (
    ActivityLog,
    ACTION_PRODUCTION, ACTION_SALE, ACTION_STOCK_ADJUSTMENT, ACTION_TYPES,
)

__all__ = [
    'ProductCategory', 'Component', 'Product', 'RecipeEntry',
    'PROCESS_PRODUCTION', 'PROCESS_SALE', 'PROCESS_TYPES',
    'ActivityLog',
    'ACTION_PRODUCTION', 'ACTION_SALE', 'ACTION_STOCK_ADJUSTMENT', 'ACTION_TYPES',
]
