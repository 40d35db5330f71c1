from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from finflow import models
from finflow.core.errors import NotFoundError
from finflow.schemas import GoalCreate, GoalUpdate

logger = logging.getLogger(__name__)


class GoalService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_goals(self, user_id: int) -> list[models.FinancialGoal]:
        return (
            self.db.query(models.FinancialGoal)
            .filter(models.FinancialGoal.user_id == user_id)
            .order_by(models.FinancialGoal.created_at.desc(), models.FinancialGoal.id.desc())
            .all()
        )

    def get_goal(self, goal_id: int, user_id: int) -> models.FinancialGoal:
        goal = (
            self.db.query(models.FinancialGoal)
            .filter(models.FinancialGoal.id == goal_id, models.FinancialGoal.user_id == user_id)
            .first()
        )
        if goal is None:
            raise NotFoundError("Goal not found")
        return goal

    def create_goal(self, user_id: int, payload: GoalCreate) -> models.FinancialGoal:
        goal = models.FinancialGoal(user_id=user_id, saved=0, **payload.model_dump())
        self.db.add(goal)
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def update_goal(self, goal_id: int, user_id: int, payload: GoalUpdate) -> models.FinancialGoal:
        goal = self.get_goal(goal_id, user_id)
        patch = payload.model_dump(exclude_unset=True)
        for required in ("name", "target", "status"):
            if required in patch and patch[required] is None:
                patch.pop(required)
        for key, value in patch.items():
            setattr(goal, key, value)
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def delete_goal(self, goal_id: int, user_id: int) -> None:
        goal = self.get_goal(goal_id, user_id)
        self.db.delete(goal)
        self.db.commit()

    def add_to_goal(self, goal_id: int, user_id: int, amount: float) -> models.FinancialGoal:
        """Add ``amount`` to the saved total; reaching the target completes the goal."""
        goal = self.get_goal(goal_id, user_id)
        goal.saved = round(float(goal.saved or 0) + float(amount), 2)
        if goal.saved >= float(goal.target) and goal.status != models.GoalStatus.COMPLETED:
            goal.status = models.GoalStatus.COMPLETED
            logger.info("Goal %s reached its target for user %s", goal.id, user_id)
        self.db.commit()
        self.db.refresh(goal)
        return goal
