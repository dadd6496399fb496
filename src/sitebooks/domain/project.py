"""Project domain service."""

from typing import Optional

from sitebooks.database.base import Database
from sitebooks.domain.entities import (
    Project as ProjectEntity,
    ProjectAlias as ProjectAliasEntity,
    UNASSIGNED_PROJECT_NUMBER,
)
from sitebooks.domain.errors import ConflictError, NotFoundError, ValidationError, project_not_found
from sitebooks.domain.project_matcher import ALIAS_MATCH_TYPES


class ProjectService:
    """Service for managing projects and their QuickBooks aliases."""

    def __init__(self, db: Database):
        """Initialize project service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_project(self, project_number: str, project_name: str) -> int:
        """Create a new project.

        Args:
            project_number: Job number, e.g. "24-001"
            project_name: Descriptive name

        Returns:
            Project ID

        Raises:
            ValidationError: If the number is empty or reserved
            ConflictError: If the project number already exists
        """
        project_number = (project_number or "").strip()
        if not project_number:
            raise ValidationError("Project number cannot be empty")
        if project_number == UNASSIGNED_PROJECT_NUMBER:
            raise ValidationError(f"Project number '{UNASSIGNED_PROJECT_NUMBER}' is reserved")
        if self.db.get_project_by_number(project_number) is not None:
            raise ConflictError(f"Project '{project_number}' already exists")
        return self.db.create_project(project_number=project_number, project_name=project_name.strip())

    def get_project(self, project_id: int) -> Optional[ProjectEntity]:
        """Get project by ID."""
        return self.db.get_project(project_id)

    def list_projects(self, include_unassigned: bool = False) -> list[ProjectEntity]:
        """List projects; the unassigned bucket is hidden unless asked for."""
        projects = self.db.list_projects()
        if include_unassigned:
            return projects
        return [p for p in projects if p.project_number != UNASSIGNED_PROJECT_NUMBER]

    def get_unassigned_project(self) -> ProjectEntity:
        """Return the project that collects rows with no matching project, creating it once."""
        project = self.db.get_project_by_number(UNASSIGNED_PROJECT_NUMBER)
        if project is None:
            project_id = self.db.create_project(
                project_number=UNASSIGNED_PROJECT_NUMBER, project_name="Unassigned"
            )
            project = self.db.get_project(project_id)
        return project

    def add_alias(self, project_id: int, alias: str, match_type: str = "exact") -> int:
        """Add a QuickBooks alias to a project.

        Raises:
            NotFoundError: If the project doesn't exist
            ValidationError: If the alias is empty or match_type is unknown
        """
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        alias = (alias or "").strip()
        if not alias:
            raise ValidationError("Alias cannot be empty")
        if match_type not in ALIAS_MATCH_TYPES:
            raise ValidationError(
                f"Invalid match type '{match_type}'. Must be one of: {', '.join(ALIAS_MATCH_TYPES)}"
            )
        return self.db.add_project_alias(project_id=project_id, alias=alias, match_type=match_type)

    def list_aliases(self, project_id: Optional[int] = None) -> list[ProjectAliasEntity]:
        """List aliases, optionally for one project."""
        return self.db.list_project_aliases(project_id=project_id)
