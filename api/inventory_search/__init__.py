# inventory_search/__init__.py
"""
Inventory Search - Elasticsearch projection of the inventory items tables.
"""
