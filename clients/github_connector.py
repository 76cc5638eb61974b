# clients/github_connector.py
"""
GitHub Connector for the collaborator permissions report.

This module walks every repository of a GitHub organization and, for each
repository, every page of its collaborators, merging the pages into a
`CollectionState`. It also expands a GitHub enterprise into its member
organizations. All calls are issued sequentially: the positional cursor
bookkeeping relies on one call completing before the next is decided.
"""

import logging
from typing import List, Optional, Iterable

from gql import Client

from clients import CriticalConnectorError, RepositoryNotQueryableError
from utils.collection_state import CollectionState, OrganizationAccumulator
from .graphql_clients import github_gql

logger = logging.getLogger(__name__)

def fetch_collaborators_for_org(
    client: Client,
    org_name: str,
    state: CollectionState,
    collaborators_page_size: int = 100,
    logger_instance: Optional[logging.Logger] = None
) -> Optional[OrganizationAccumulator]:
    """
    Pages through all repositories of `org_name` and their collaborators,
    merging every page into `state`.

    Returns the organization's accumulator, or None if nothing could be
    collected (no repositories visible, missing permission, or a failure on
    the first call). On a failure mid-way the partially collected
    accumulator is returned and kept in `state`.
    """
    current_logger = logger_instance if logger_instance else logger
    log_extra = {'organization': org_name}

    repositories_cursor: Optional[str] = None
    collaborators_cursor: Optional[str] = None

    while True:
        try:
            org_page = github_gql.fetch_organization_page(
                client,
                org_name,
                repositories_cursor=repositories_cursor,
                collaborators_cursor=collaborators_cursor,
                collaborators_page_size=collaborators_page_size,
                logger_instance=current_logger
            )
        except RepositoryNotQueryableError as skip:
            current_logger.info(f"⏸  Skipping archived repository {skip.repository_name}", extra=log_extra)
            repositories_cursor = skip.resume_cursor
            collaborators_cursor = None
            continue
        except CriticalConnectorError as e_conn:
            current_logger.error(f"Stopping collection for {org_name}: {e_conn}", extra=log_extra)
            return state.get(org_name)

        repositories_page = (org_page or {}).get("repositories") or {}
        repository_nodes = repositories_page.get("nodes") or []
        if not repository_nodes:
            current_logger.info(f"⏸  No data found for {org_name}, maybe you don't have the correct permission", extra=log_extra)
            return state.get(org_name)

        repositories_page_info = repositories_page.get("pageInfo") or {}
        current_repository_node = repository_nodes[0]

        accumulator = state.get(org_name)
        if accumulator is None:
            accumulator = OrganizationAccumulator(login=org_page.get("login") or org_name)
            state.set(org_name, accumulator)

        previous_repository = accumulator.current_repository
        repository, is_new = accumulator.merge_repository_page(
            current_repository_node,
            repositories_cursor,
            repositories_page_info.get("hasNextPage") is True
        )
        if is_new:
            if previous_repository is not None:
                current_logger.info(
                    f"✅ Finished scanning {previous_repository.name}, total number of members: {len(previous_repository.collaborators)}",
                    extra=log_extra
                )
        else:
            current_logger.info(
                f"⏳ Still scanning {repository.name}, current member count: {len(repository.collaborators)}",
                extra=log_extra
            )

        collaborators_page_info = (current_repository_node.get("collaborators") or {}).get("pageInfo") or {}
        collaborators_end_cursor = collaborators_page_info.get("endCursor")

        if collaborators_page_info.get("hasNextPage") is True and collaborators_end_cursor:
            repositories_cursor = accumulator.resume_repositories_cursor()
            collaborators_cursor = collaborators_end_cursor
            continue
        if collaborators_page_info.get("hasNextPage") is True:
            current_logger.warning(
                f"Collaborators of {repository.name} report a next page without a cursor. Moving on to the next repository.",
                extra=log_extra
            )
            repository.collaborators_has_next_page = False

        if repositories_page_info.get("hasNextPage") is True and repositories_page_info.get("endCursor"):
            repositories_cursor = repositories_page_info["endCursor"]
            collaborators_cursor = None
            continue

        current_logger.info(
            f"✅ Finished scanning {repository.name}, total number of members: {len(repository.collaborators)}",
            extra=log_extra
        )
        return accumulator

def expand_enterprise_organizations(
    client: Client,
    enterprise: str,
    logger_instance: Optional[logging.Logger] = None
) -> List[str]:
    """
    Resolves an enterprise slug to the logins of its member organizations.
    Follows the organization listing's pages; on failure returns what was gathered.
    """
    current_logger = logger_instance if logger_instance else logger
    logins: List[str] = []
    organizations_cursor: Optional[str] = None
    page_num = 0

    while True:
        page_num += 1
        try:
            organizations_page = github_gql.fetch_enterprise_organizations_page(
                client, enterprise, organizations_cursor, logger_instance=current_logger
            )
        except CriticalConnectorError as e_conn:
            current_logger.error(f"Failed to list organizations of enterprise {enterprise} (page {page_num}): {e_conn}")
            break

        if not organizations_page:
            current_logger.warning(f"Enterprise {enterprise} not found or not accessible with the provided token.")
            break

        logins.extend(node["login"] for node in organizations_page.get("nodes") or [] if node and node.get("login"))
        page_info = organizations_page.get("pageInfo") or {}
        if page_info.get("hasNextPage") is True and page_info.get("endCursor"):
            organizations_cursor = page_info["endCursor"]
            current_logger.info(f"Enterprise {enterprise} has more organizations than one page; fetching page {page_num + 1}.")
            continue
        break

    current_logger.info(f"Found {len(logins)} organizations in enterprise {enterprise}.")
    return logins

def collect_all_organizations(
    client: Client,
    organizations: Iterable[str],
    state: Optional[CollectionState] = None,
    collaborators_page_size: int = 100,
    logger_instance: Optional[logging.Logger] = None
) -> CollectionState:
    """
    Runs the collection for each organization in turn. A failure for one
    organization never stops the others.
    """
    current_logger = logger_instance if logger_instance else logger
    state = state if state is not None else CollectionState()

    for org_name in organizations:
        log_extra = {'organization': org_name}
        current_logger.info(f"🔍 Start collecting for organization {org_name}.", extra=log_extra)
        state.begin(org_name)
        try:
            fetch_collaborators_for_org(
                client, org_name, state,
                collaborators_page_size=collaborators_page_size,
                logger_instance=current_logger
            )
        except Exception as e_org:
            current_logger.error(f"CRITICAL UNEXPECTED ERROR collecting {org_name}: {e_org}", exc_info=True, extra=log_extra)
            continue

        accumulator = state.get(org_name)
        if accumulator:
            current_logger.info(
                f"✅ Finished collecting for organization {org_name}, total number of repos: {len(accumulator.repositories)}",
                extra=log_extra
            )
    return state
