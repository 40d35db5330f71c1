from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from finflow import models
from finflow.core.database import get_db
from finflow.core.deps import get_current_user
from finflow.schemas import GoalContribution, GoalCreate, GoalOut, GoalUpdate
from finflow.services import GoalService

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("", response_model=list[GoalOut])
def list_goals(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return GoalService(db).list_goals(user.id)


@router.post("", response_model=GoalOut, status_code=201)
def create_goal(
    payload: GoalCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return GoalService(db).create_goal(user.id, payload)


@router.put("/{goal_id}", response_model=GoalOut)
def update_goal(
    goal_id: int,
    payload: GoalUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return GoalService(db).update_goal(goal_id, user.id, payload)


@router.delete("/{goal_id}", status_code=204)
def delete_goal(goal_id: int, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    GoalService(db).delete_goal(goal_id, user.id)
    return Response(status_code=204)


@router.post("/{goal_id}/add", response_model=GoalOut)
def add_to_goal(
    goal_id: int,
    payload: GoalContribution,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return GoalService(db).add_to_goal(goal_id, user.id, payload.amount)
