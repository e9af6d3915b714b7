# src/ratekeeper/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (remote API and mock data)
- Persistence (storage)
- Formatting (output)
"""

__all__ = []
