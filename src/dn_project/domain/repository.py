from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_project.domain.models import FundraisingProject


class ProjectRepositoryProtocol(Protocol):
    async def get_project(self, db: AsyncSession, project_id: int) -> FundraisingProject | None: ...

    async def lock_project(
        self, db: AsyncSession, project_id: int
    ) -> FundraisingProject | None: ...

    async def save_totals(self, db: AsyncSession, project: FundraisingProject) -> None: ...
