"""Router aggregation.

Feature routers live in this package; ``register_routers`` mounts them all
under ``/api``.
"""

from fastapi import FastAPI

from . import categories, dashboard, goals, maintenance
from .transactions import expense_router, fixed_expense_router, fixed_income_router, income_router


def register_routers(app: FastAPI) -> None:
    """Attach all API routes to the FastAPI application."""

    for router in (income_router, expense_router, fixed_income_router, fixed_expense_router):
        app.include_router(router, prefix="/api")
    app.include_router(categories.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(goals.router, prefix="/api")
    app.include_router(maintenance.router, prefix="/api")
