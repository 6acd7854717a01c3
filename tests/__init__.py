"""
Event Calendar Test Suite

Covers the Event model, validation, query scopes, the save/geocode lifecycle,
geocoding providers and the database/session helpers.

Run tests using: python -m pytest tests/
"""
