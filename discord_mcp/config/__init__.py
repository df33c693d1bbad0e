"""
Configuration Layer.

Settings (environment / .env), logging setup, and the persisted default-guild store.
"""
