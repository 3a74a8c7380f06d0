"""
Taskboard Backend — Repositories
==================================

Data access for users and tasks. Repositories run queries on the session
they are given and flush, but never commit; the calling service owns the
transaction. Every read path returns a public projection (UserPublic,
TaskPublic, TaskWithOwner), never an ORM row.
"""

from taskboard.repositories.tasks import TaskRepository
from taskboard.repositories.users import UserRepository

__all__ = ["TaskRepository", "UserRepository"]
