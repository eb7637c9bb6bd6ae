"""
Default Category Catalog

Created once for every new user by CategoryRegistry.bootstrap_defaults.
Five income categories, nine expense categories. Categories themselves have
no kind; the split only keeps the catalog readable.
"""


DEFAULT_INCOME_CATEGORIES: tuple[dict, ...] = (
    {"name": "Salary", "color": "#22c55e", "description": "Salary and earnings from work"},
    {"name": "Freelance", "color": "#3b82f6", "description": "Freelance work and side projects"},
    {"name": "Investments", "color": "#10b981", "description": "Investment returns"},
    {"name": "Sales", "color": "#06b6d4", "description": "Sales of products or services"},
    {"name": "Other Income", "color": "#8b5cf6", "description": "Other sources of income"},
)

DEFAULT_EXPENSE_CATEGORIES: tuple[dict, ...] = (
    {"name": "Food", "color": "#f59e0b", "description": "Groceries, restaurants and delivery"},
    {"name": "Transport", "color": "#ef4444", "description": "Fuel, public transport and ride sharing"},
    {"name": "Housing", "color": "#6b7280", "description": "Rent, mortgage and household bills"},
    {"name": "Health", "color": "#ec4899", "description": "Medicine, appointments and health plans"},
    {"name": "Education", "color": "#8b5cf6", "description": "Courses, books and school supplies"},
    {"name": "Leisure", "color": "#f97316", "description": "Movies, travel and entertainment"},
    {"name": "Clothing", "color": "#84cc16", "description": "Clothes and accessories"},
    {"name": "Technology", "color": "#0ea5e9", "description": "Electronics, apps and digital services"},
    {"name": "Other Expenses", "color": "#64748b", "description": "Miscellaneous expenses"},
)

DEFAULT_CATEGORIES: tuple[dict, ...] = DEFAULT_INCOME_CATEGORIES + DEFAULT_EXPENSE_CATEGORIES


def default_category_payloads() -> list[dict[str, str]]:
    """Fresh create payloads for the catalog."""
    return [dict(entry) for entry in DEFAULT_CATEGORIES]
