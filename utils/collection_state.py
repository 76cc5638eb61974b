# utils/collection_state.py
"""
In-memory accumulators for the collaborator collection.

A GitHub organization is walked one repository page at a time, and each
repository's collaborators are paged independently. The classes here hold
what has been gathered so far so that every new page can be merged into the
existing tree instead of rebuilding it.

The GraphQL API cannot resume a repository's collaborator listing by name;
it re-derives "the current repository" from the repository cursor. Each
repository boundary therefore records the repository cursor that positions
the listing on the repository that follows it (`prior_repository_cursor`).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass
class CollaboratorRecord:
    login: str
    permission: Optional[str]
    name: Optional[str] = None

    @classmethod
    def from_edge(cls, edge: Dict[str, Any]) -> "CollaboratorRecord":
        """Builds a record from a GraphQL collaborator edge ({node: {name, login}, permission})."""
        node = edge.get("node") or {}
        return cls(login=node.get("login"), permission=edge.get("permission"), name=node.get("name"))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "login": self.login, "permission": self.permission}


@dataclass
class RepositoryAccumulator:
    name: str
    collaborators: List[CollaboratorRecord] = field(default_factory=list)
    collaborators_has_next_page: bool = False
    # Repository cursor that was in effect when the listing moved past this repository.
    prior_repository_cursor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "collaborators": [c.to_dict() for c in self.collaborators],
            "collaboratorsHasNextPage": self.collaborators_has_next_page,
            "priorRepositoryCursor": self.prior_repository_cursor,
        }


def _collaborators_from_page(collaborators_page: Optional[Dict[str, Any]]) -> Tuple[List[CollaboratorRecord], bool, Optional[str]]:
    if not collaborators_page:
        return [], False, None
    edges = collaborators_page.get("edges") or []
    page_info = collaborators_page.get("pageInfo") or {}
    records = [CollaboratorRecord.from_edge(edge) for edge in edges if edge]
    return records, page_info.get("hasNextPage") is True, page_info.get("endCursor")


@dataclass
class OrganizationAccumulator:
    login: str
    repositories: List[RepositoryAccumulator] = field(default_factory=list)
    repositories_has_next_page: bool = False
    # Repository cursor the first repository was fetched with. None unless the
    # listing started past a skipped repository.
    first_repository_cursor: Optional[str] = None

    @property
    def current_repository(self) -> Optional[RepositoryAccumulator]:
        """The in-progress repository is always the last one appended."""
        return self.repositories[-1] if self.repositories else None

    def merge_repository_page(
        self,
        repository_node: Dict[str, Any],
        repositories_cursor: Optional[str],
        repositories_has_next_page: bool
    ) -> Tuple[RepositoryAccumulator, bool]:
        """
        Merges one repository node (with its page of collaborators) into the tree.

        Args:
            repository_node: the single repository node of the page.
            repositories_cursor: the repository cursor the page was requested with.
            repositories_has_next_page: the repository page's hasNextPage flag.

        Returns:
            (the repository accumulator the page was merged into, True if that
            repository was newly appended).
        """
        records, collaborators_has_next, _ = _collaborators_from_page(repository_node.get("collaborators"))
        self.repositories_has_next_page = repositories_has_next_page
        last = self.current_repository

        if last is not None and last.name == repository_node.get("name"):
            last.collaborators.extend(records)
            last.collaborators_has_next_page = collaborators_has_next
            return last, False

        if last is not None:
            last.prior_repository_cursor = repositories_cursor
        else:
            self.first_repository_cursor = repositories_cursor
        new_repository = RepositoryAccumulator(
            name=repository_node.get("name"),
            collaborators=records,
            collaborators_has_next_page=collaborators_has_next,
        )
        self.repositories.append(new_repository)
        return new_repository, True

    def resume_repositories_cursor(self) -> Optional[str]:
        """
        Repository cursor that makes the API return the current repository again,
        used to fetch its next page of collaborators.
        """
        if len(self.repositories) < 2:
            return self.first_repository_cursor
        return self.repositories[-2].prior_repository_cursor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "login": self.login,
            "repositories": [r.to_dict() for r in self.repositories],
            "repositoriesHasNextPage": self.repositories_has_next_page,
            "firstRepositoryCursor": self.first_repository_cursor,
        }


class CollectionState:
    """
    Insertion-ordered mapping of organization login to its accumulator.
    A None value means nothing could be collected for that organization.
    """

    def __init__(self):
        self._organizations: Dict[str, Optional[OrganizationAccumulator]] = {}
        self._frozen = False

    def _check_mutable(self):
        if self._frozen:
            raise RuntimeError("CollectionState is frozen and can no longer be modified")

    def begin(self, login: str):
        """Registers an organization before its traversal starts."""
        self._check_mutable()
        self._organizations[login] = None

    def get(self, login: str) -> Optional[OrganizationAccumulator]:
        return self._organizations.get(login)

    def set(self, login: str, accumulator: Optional[OrganizationAccumulator]):
        self._check_mutable()
        self._organizations[login] = accumulator

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def items(self) -> Iterator[Tuple[str, Optional[OrganizationAccumulator]]]:
        return iter(list(self._organizations.items()))

    def __contains__(self, login: str) -> bool:
        return login in self._organizations

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._organizations))

    def __len__(self) -> int:
        return len(self._organizations)

    def to_dict(self) -> Dict[str, Optional[Dict[str, Any]]]:
        return {login: (acc.to_dict() if acc else None) for login, acc in self._organizations.items()}
