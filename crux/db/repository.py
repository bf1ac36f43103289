from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ..models import ProjectRecord, UserRecord
from .models import Project, User


class ProjectRepository(Protocol):
    """Persistence operations the pipeline depends on."""

    async def find_user_by_external_id(self, external_id: str) -> Optional[UserRecord]:
        ...

    async def upsert_user(self, external_id: str, email: Optional[str] = None) -> UserRecord:
        ...

    async def create_project(
        self,
        user_id: int,
        title: str,
        prompt: Optional[str],
        content_json: Dict[str, Any],
        deployed_url: Optional[str],
    ) -> ProjectRecord:
        ...

    async def find_project(self, project_id: int) -> Optional[ProjectRecord]:
        ...

    async def list_projects(self, user_id: int) -> List[ProjectRecord]:
        ...

    async def delete_project(self, project_id: int) -> bool:
        ...


class SqlProjectRepository:
    """SQLAlchemy (asyncio) implementation of ProjectRepository."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def find_user_by_external_id(self, external_id: str) -> Optional[UserRecord]:
        if not external_id:
            return None
        async with self.session_factory() as session:
            row = await session.scalar(select(User).where(User.external_id == external_id))
            return UserRecord.model_validate(row) if row else None

    async def upsert_user(self, external_id: str, email: Optional[str] = None) -> UserRecord:
        async with self.session_factory() as session:
            row = await session.scalar(select(User).where(User.external_id == external_id))
            if row is None:
                row = User(external_id=external_id, email=email or "no-email@example.com")
                session.add(row)
            elif email and row.email != email:
                row.email = email
            await session.commit()
            await session.refresh(row)
            return UserRecord.model_validate(row)

    async def create_project(
        self,
        user_id: int,
        title: str,
        prompt: Optional[str],
        content_json: Dict[str, Any],
        deployed_url: Optional[str],
    ) -> ProjectRecord:
        async with self.session_factory() as session:
            row = Project(
                user_id=user_id,
                title=title,
                prompt=prompt,
                content_json=content_json,
                deployed_url=deployed_url,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return ProjectRecord.model_validate(row)

    async def find_project(self, project_id: int) -> Optional[ProjectRecord]:
        async with self.session_factory() as session:
            row = await session.get(Project, project_id)
            return ProjectRecord.model_validate(row) if row else None

    async def list_projects(self, user_id: int) -> List[ProjectRecord]:
        """Projects of one user, newest first."""
        async with self.session_factory() as session:
            rows = await session.scalars(
                select(Project)
                .where(Project.user_id == user_id)
                .order_by(Project.created_at.desc(), Project.id.desc())
            )
            return [ProjectRecord.model_validate(r) for r in rows]

    async def delete_project(self, project_id: int) -> bool:
        async with self.session_factory() as session:
            row = await session.get(Project, project_id)
            if not row:
                return False
            await session.delete(row)
            await session.commit()
            return True
