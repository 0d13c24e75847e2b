"""
Hotelius Django HTTP adapter.
Thin framework glue over core/http_api handlers.
"""

from adapters.django_api.wiring import (
    build_dependencies,
    configure_dependencies,
    reset_dependencies,
)

__all__ = [
    "build_dependencies",
    "configure_dependencies",
    "reset_dependencies",
]
