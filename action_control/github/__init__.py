"""
GitHub repository content provider.
"""

from .base import RepositoryContentProvider
from .client import GitHubClient
from .models import Repository
from .workflows import extract_actions_from_workflow

__all__ = ["RepositoryContentProvider", "GitHubClient", "Repository", "extract_actions_from_workflow"]
