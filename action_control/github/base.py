"""
Base interface for repository content providers.
"""
from typing import List, Optional, Protocol

from action_control.github.models import Repository
from action_control.policy.models import ObservedAction


class RepositoryContentProvider(Protocol):
    """
    Protocol for a source of repositories and their workflow contents.

    Every method may be slow and may fail with a TransportError; callers are
    expected to bound each call with a timeout.
    """

    async def list_repositories(self, org: str) -> List[Repository]:
        """
        Lists every repository in an organization.

        Args:
            org: The organization login.
        """
        ...

    async def get_actions(self, owner: str, repo: str) -> List[ObservedAction]:
        """
        Returns the action references used by a repository's workflows.

        One entry per step `uses` and per job-level reusable workflow
        reference, in file order.
        """
        ...

    async def get_repository_content(self, owner: str, repo: str, path: str) -> Optional[bytes]:
        """
        Returns the raw bytes of a file, or None when it does not exist.
        """
        ...
