"""ProjectRepository — raw SQL access to fundraising_projects totals.

`lock_project` takes a row lock (SELECT ... FOR UPDATE) so the read of
current_amount and the write of current_amount + progress_percentage happen
against the same committed value inside the caller's transaction.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_project.domain.models import FundraisingProject

_SELECT_COLUMNS = """
    id, title, target_amount, current_amount, progress_percentage, updated_at
"""

_GET_PROJECT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM fundraising_projects
    WHERE id = :id
""")

_LOCK_PROJECT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM fundraising_projects
    WHERE id = :id
    FOR UPDATE
""")

_SAVE_TOTALS_SQL = text("""
    UPDATE fundraising_projects
    SET current_amount = :current_amount,
        progress_percentage = :progress_percentage,
        updated_at = NOW()
    WHERE id = :id
""")


def _row_to_project(row: object) -> FundraisingProject:
    return FundraisingProject(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        target_amount=row.target_amount,  # type: ignore[attr-defined]
        current_amount=row.current_amount,  # type: ignore[attr-defined]
        progress_percentage=row.progress_percentage,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class ProjectRepository:
    async def get_project(self, db: AsyncSession, project_id: int) -> FundraisingProject | None:
        result = await db.execute(_GET_PROJECT_SQL, {"id": project_id})
        row = result.fetchone()
        return _row_to_project(row) if row else None

    async def lock_project(
        self, db: AsyncSession, project_id: int
    ) -> FundraisingProject | None:
        result = await db.execute(_LOCK_PROJECT_SQL, {"id": project_id})
        row = result.fetchone()
        return _row_to_project(row) if row else None

    async def save_totals(self, db: AsyncSession, project: FundraisingProject) -> None:
        await db.execute(
            _SAVE_TOTALS_SQL,
            {
                "id": project.id,
                "current_amount": project.current_amount,
                "progress_percentage": project.progress_percentage,
            },
        )
