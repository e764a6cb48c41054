"""
Services module for business logic.

This module organizes services into:
- core: data provider, projection engine, parlay and strategy services
"""
