"""Default sales team seeding, run once at application startup."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.salepro.core.errors import StoreError
from src.salepro.records.adapter import RecordStore
from src.salepro.records.schemas import SalesTeam, SalesTeamCreate

logger = structlog.get_logger(__name__)


async def ensure_default_sales_teams(
    store: RecordStore[SalesTeam],
    names: Iterable[str],
) -> list[SalesTeam]:
    """Create a sales team for every name not already present.

    A name is present when an existing team carries it as either its name
    or its member name. Store failures are logged and seeding stops; startup
    continues without the missing teams.

    Args:
        store: Sales team record store.
        names: Team names to ensure.

    Returns:
        The teams created by this call.
    """
    names = [name for name in names if name]
    if not names:
        return []

    created: list[SalesTeam] = []
    try:
        existing = await store.get_all()
        known = {team.name for team in existing} | {
            team.member_name for team in existing if team.member_name
        }

        for name in names:
            if name in known:
                continue
            team = await store.create(SalesTeamCreate(name=name, member_name=name))
            if team is None:
                logger.warning("sales_teams.create_rejected", name=name)
                continue
            known.add(name)
            created.append(team)
    except StoreError as exc:
        logger.error("sales_teams.seed_failed", error=str(exc))
        return created

    logger.info("sales_teams.seeded", created=len(created), requested=len(names))
    return created
