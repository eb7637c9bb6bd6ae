"""
fintrack - Source Package

Domain and aggregation core of a personal finance tracker.
Users record income/expense transactions against their own categories;
this package validates those records, keeps them consistent, and derives
balances, monthly views and chart series for whatever renders them.

DESIGN PRINCIPLES:
1. Validate before anything touches the store
2. Business rejections are results, not exceptions
3. Never delete data implicitly (no cascades)
4. Aggregations are pure and clock-free
5. Storage and identity are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "fintrack Team"
