"""
Task CRUD operations.

Dependencies: taskstore.boundary.db.models
System role: Task persistence operations
"""

from taskstore.boundary.db.CRUD.base_crud import BaseCRUD
from taskstore.boundary.db.models.task_model import TaskModel


class TaskCRUD(BaseCRUD[TaskModel]):
    """
    CRUD operations for TaskModel.

    Visibility filtering happens above the adapters, so tasks only need the
    generic operations.
    """

    def __init__(self) -> None:
        """Initialize TaskCRUD with TaskModel."""
        super().__init__(TaskModel)


task_crud = TaskCRUD()
