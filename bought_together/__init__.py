"""
Bought-Together Analytics

Market-basket analysis over store order snapshots.
"""

__version__ = "1.0.0"
