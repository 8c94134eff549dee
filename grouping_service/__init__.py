"""
Tab Grouper - Grouping Service

FastAPI service that asks a completion model to cluster browser tabs
by topic and returns a category to tab-id mapping.
"""

__version__ = "1.0.0"
