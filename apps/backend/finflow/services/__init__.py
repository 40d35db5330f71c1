"""
Services package

Business logic classes; each takes the request's SQLAlchemy session.
"""

from .category_service import CategoryService
from .dashboard_service import DashboardService
from .goal_service import GoalService
from .history_service import HistoryService
from .maintenance_service import MaintenanceService
from .occurrence_service import OccurrenceService
from .transaction_repository import TransactionRepository
from .transaction_service import TransactionService

__all__ = [
    "CategoryService",
    "DashboardService",
    "GoalService",
    "HistoryService",
    "MaintenanceService",
    "OccurrenceService",
    "TransactionRepository",
    "TransactionService",
]
