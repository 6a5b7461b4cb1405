"""Shared utilities — logging and other cross-cutting concerns.

Rules
-----
* No business logic.
* No I/O beyond what the standard logging machinery does.
* Importable by any layer.
"""
