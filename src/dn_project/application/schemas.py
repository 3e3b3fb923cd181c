from pydantic import BaseModel

from src.dn_common.satang import satang_to_display
from src.dn_project.domain.models import FundraisingProject


class ProjectProgressResponse(BaseModel):
    project_id: int
    title: str
    target_amount_satang: int
    target_amount_display: str
    current_amount_satang: int
    current_amount_display: str
    progress_percentage: str

    @classmethod
    def from_project(cls, project: FundraisingProject) -> "ProjectProgressResponse":
        return cls(
            project_id=project.id,
            title=project.title,
            target_amount_satang=project.target_amount,
            target_amount_display=satang_to_display(project.target_amount),
            current_amount_satang=project.current_amount,
            current_amount_display=satang_to_display(project.current_amount),
            progress_percentage=str(project.progress_percentage),
        )
