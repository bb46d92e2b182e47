"""Board templates used when creating boards."""

from typing import List, NamedTuple, Optional

from taskrecon.models.task import TaskStatus


class TemplateStatus(NamedTuple):
    label: str
    color: str
    category: TaskStatus
    is_terminal: bool = False


class BoardTemplate(NamedTuple):
    id: str
    name: str
    description: str
    statuses: List[TemplateStatus]


BOARD_TEMPLATES = [
    BoardTemplate(
        id="kanban-basic",
        name="Basic Kanban",
        description="A classic flow with review and done states.",
        statuses=[
            TemplateStatus("To do", "#3b82f6", TaskStatus.TODO),
            TemplateStatus("In progress", "#f59e0b", TaskStatus.IN_PROGRESS),
            TemplateStatus("Review", "#8b5cf6", TaskStatus.IN_PROGRESS),
            TemplateStatus("Done", "#10b981", TaskStatus.DONE, is_terminal=True),
        ],
    ),
    BoardTemplate(
        id="simple",
        name="Simple Flow",
        description="A lightweight board for quick tracking.",
        statuses=[
            TemplateStatus("Backlog", "#94a3b8", TaskStatus.TODO),
            TemplateStatus("Doing", "#f97316", TaskStatus.IN_PROGRESS),
            TemplateStatus("Done", "#22c55e", TaskStatus.DONE, is_terminal=True),
        ],
    ),
    BoardTemplate(
        id="sales-pipeline",
        name="Sales Pipeline",
        description="Track deals from lead to close.",
        statuses=[
            TemplateStatus("Lead", "#38bdf8", TaskStatus.TODO),
            TemplateStatus("Qualified", "#6366f1", TaskStatus.IN_PROGRESS),
            TemplateStatus("Proposal", "#f59e0b", TaskStatus.IN_PROGRESS),
            TemplateStatus("Closed won", "#16a34a", TaskStatus.DONE, is_terminal=True),
        ],
    ),
]

DEFAULT_BOARD_TEMPLATE_ID = "kanban-basic"


def get_board_template(template_id: Optional[str] = None) -> BoardTemplate:
    """Template by id, falling back to the default template."""
    for template in BOARD_TEMPLATES:
        if template.id == template_id:
            return template
    for template in BOARD_TEMPLATES:
        if template.id == DEFAULT_BOARD_TEMPLATE_ID:
            return template
    return BOARD_TEMPLATES[0]
