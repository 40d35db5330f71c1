from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from finflow.core.database import get_db
from finflow import models


def get_current_user(db: Session = Depends(get_db)) -> models.User:
    """Stand-in for the authentication layer.

    Returns the first user (creates a demo one if none). Tests override this
    dependency to act as different users.
    """
    user = db.query(models.User).order_by(models.User.id).first()
    if not user:
        user = models.User(email="demo@example.com", name="Demo", is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
    return user
