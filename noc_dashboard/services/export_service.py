"""Cloud side of the sync protocol: full read-only dumps of each resource."""

from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from noc_dashboard.models.analyst import Analyst
from noc_dashboard.models.pop import Pop
from noc_dashboard.models.schedule import Schedule
from noc_dashboard.models.shift import Shift


class ExportService:
    async def list_clients(self, db: AsyncSession) -> List[str]:
        result = await db.execute(select(Pop.client).distinct().order_by(Pop.client))
        return list(result.scalars().all())

    async def list_pops(self, db: AsyncSession, client: str) -> Sequence[Pop]:
        result = await db.execute(select(Pop).where(Pop.client == client).order_by(Pop.id))
        return result.scalars().all()

    async def list_analysts(self, db: AsyncSession) -> Sequence[Analyst]:
        result = await db.execute(select(Analyst).order_by(Analyst.id))
        return result.scalars().all()

    async def list_shifts(self, db: AsyncSession) -> Sequence[Shift]:
        result = await db.execute(select(Shift).order_by(Shift.id))
        return result.scalars().all()

    async def list_schedules(self, db: AsyncSession) -> Sequence[Schedule]:
        result = await db.execute(select(Schedule).order_by(Schedule.date, Schedule.id))
        return result.scalars().all()


export_service = ExportService()
