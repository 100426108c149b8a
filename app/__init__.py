"""Ranking engine and FastAPI application package.

The engine modules (``join``, ``popularity``, ``digest``, ``graphic`` and
``overview``) are pure functions over already-fetched records; ``services``
holds the upstream clients and the orchestration layer, and ``main`` the
HTTP routes.
"""
