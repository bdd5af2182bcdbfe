# federation/routers/dashboard.py

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from federation import auth, models, status
from federation.database import get_db
from federation.dependencies import get_today

router = APIRouter(tags=["Dashboard"], dependencies=[Depends(auth.get_current_user)])

EXPIRING_SOON_DAYS = 30


@router.get("/dashboard/metrics")
def get_dashboard_metrics(
    expiring_within: int = Query(EXPIRING_SOON_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Credentials are counted by what the UI would show, so an ACTIVE row past
    its expiry date lands under EXPIRED even before the nightly refresh.
    """
    creds = db.scalars(select(models.Credential)).all()

    by_display_state: dict[str, int] = {}
    for c in creds:
        key = status.credential_display_state(c, today)
        by_display_state[key] = by_display_state.get(key, 0) + 1

    horizon = today + timedelta(days=expiring_within)
    expiring_soon = sum(
        1 for c in creds if status.is_currently_valid(c, today) and c.expiry_date <= horizon
    )

    persons_by_club = [
        {"club": name, "count": count}
        for name, count in db.execute(
            select(models.Club.name, func.count(models.Person.id))
            .join(models.Person, models.Person.club_id == models.Club.id)
            .group_by(models.Club.id, models.Club.name)
            .order_by(func.count(models.Person.id).desc(), models.Club.name)
        ).all()
    ]

    # roles is a JSON list, so it is unnested here rather than in SQL
    role_counts: dict[str, int] = {}
    for roles in db.scalars(select(models.Person.roles)).all():
        for role in roles or []:
            role_counts[role] = role_counts.get(role, 0) + 1
    persons_by_role = [
        {"role": role, "count": count}
        for role, count in sorted(role_counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]

    passes_by_authorization = dict(
        db.execute(
            select(models.Pass.authorization, func.count(models.Pass.id)).group_by(models.Pass.authorization)
        ).all()
    )

    return {
        "today": today.isoformat(),
        "persons": db.scalar(select(func.count(models.Person.id))) or 0,
        "persons_by_club": persons_by_club,
        "persons_by_role": persons_by_role,
        "clubs": db.scalar(select(func.count(models.Club.id)).where(models.Club.is_active == True)) or 0,  # noqa: E712
        "credentials": {
            "total": len(creds),
            "by_display_state": by_display_state,
            "expiring_soon": expiring_soon,
            "expiring_within_days": expiring_within,
        },
        "passes": {
            "total": sum(passes_by_authorization.values()),
            "by_authorization": passes_by_authorization,
        },
    }
