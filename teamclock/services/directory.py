from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from teamclock.models import SecondaryManager, User


def list_project_users(
    db: Session,
    *,
    requester: User,
    for_update: bool = False,
) -> list[User]:
    """Flat user snapshot of the requester's project, oldest accounts first.

    A user outside any project works in a private workspace and only ever
    sees itself.
    """
    if requester.project_id is None:
        return [requester]

    stmt = (
        select(User)
        .where(User.project_id == requester.project_id)
        .order_by(User.created_at.asc(), User.id.asc())
    )
    if for_update:
        stmt = stmt.with_for_update()
    return list(db.scalars(stmt).all())


def list_secondary_relations(
    db: Session,
    *,
    manager_id: int | None = None,
    employee_id: int | None = None,
) -> list[SecondaryManager]:
    stmt = select(SecondaryManager).order_by(SecondaryManager.id.asc())
    if manager_id is not None and employee_id is not None:
        stmt = stmt.where(
            or_(
                SecondaryManager.manager_id == manager_id,
                SecondaryManager.employee_id == employee_id,
            )
        )
    elif manager_id is not None:
        stmt = stmt.where(SecondaryManager.manager_id == manager_id)
    elif employee_id is not None:
        stmt = stmt.where(SecondaryManager.employee_id == employee_id)
    return list(db.scalars(stmt).all())


def get_secondary_relation(db: Session, *, employee_id: int, manager_id: int) -> SecondaryManager | None:
    return db.scalar(
        select(SecondaryManager).where(
            SecondaryManager.employee_id == employee_id,
            SecondaryManager.manager_id == manager_id,
        )
    )
