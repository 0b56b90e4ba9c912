"""
Recovery - restorative micro-activities

    catalog.py:  RestorativeActivity and the default catalog
    selector.py: Cross-domain suggestion selection and completion tracking
"""

from cogbudget.recovery.catalog import DEFAULT_CATALOG, RestorativeActivity

__all__ = ["DEFAULT_CATALOG", "RestorativeActivity"]
