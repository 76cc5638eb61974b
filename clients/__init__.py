# In clients/__init__.py
from typing import Any, Dict, List, Optional


class CriticalConnectorError(Exception):
    """Indicates a critical, non-recoverable error within a connector for a target."""
    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class RepositoryNotQueryableError(Exception):
    """
    Raised when the API refuses to list the collaborators of a repository
    (archived repositories without the required access). Carries the cursor
    that positions the repository listing right after the offending repository.
    """
    def __init__(self, repository_name: Optional[str], resume_cursor: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(f"Repository '{repository_name}' cannot be queried for collaborators")
        self.repository_name = repository_name
        self.resume_cursor = resume_cursor
        self.errors = errors or []
