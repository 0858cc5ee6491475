"""
Cache Domain Module

Domain model for the request cache.
Contains entities, value objects, the backing store interface and invalidation rules.
"""
