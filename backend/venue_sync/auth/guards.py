from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from venue_sync.auth.deps import get_current_user
from venue_sync.models import Restaurant, SystemRole, User, Venue


def is_super_admin(user: User) -> bool:
    return user.system_role == SystemRole.SUPER_ADMIN.value


def require_super_admin(user: User = Depends(get_current_user)) -> User:
    if not is_super_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="SUPER_ADMIN required",
        )
    return user


# A missing record passes the guard; the service then reports not_found.

def require_restaurant_owner(db: Session, *, restaurant_id: int, user: User) -> None:
    if is_super_admin(user):
        return
    row = db.query(Restaurant.owner_user_id).filter(Restaurant.id == restaurant_id).one_or_none()
    if row is not None and row.owner_user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")


def require_venue_manager(db: Session, *, venue_id: int, user: User) -> None:
    if is_super_admin(user):
        return
    row = db.query(Venue.manager_user_id).filter(Venue.id == venue_id).one_or_none()
    if row is not None and row.manager_user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
