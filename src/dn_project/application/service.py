from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.errors import ProjectNotFoundError
from src.dn_project.application.schemas import ProjectProgressResponse
from src.dn_project.domain.repository import ProjectRepositoryProtocol
from src.dn_project.infrastructure.persistence import ProjectRepository


class ProjectApplicationService:
    def __init__(self, repo: ProjectRepositoryProtocol | None = None) -> None:
        self._repo: ProjectRepositoryProtocol = repo or ProjectRepository()

    async def get_progress(self, db: AsyncSession, project_id: int) -> ProjectProgressResponse:
        project = await self._repo.get_project(db, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return ProjectProgressResponse.from_project(project)
