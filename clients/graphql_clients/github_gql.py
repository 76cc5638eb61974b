# clients/graphql_clients/github_gql.py
"""
GraphQL client for paging repository collaborators of GitHub organizations
and listing the member organizations of a GitHub enterprise.

Every fetch function here executes exactly one query and classifies its
failure; callers decide how to continue.
"""
from datetime import datetime, timezone
import logging
from typing import Optional, Dict, Any, List

import requests
from gql import gql, Client
from gql.transport.requests import RequestsHTTPTransport
from gql.transport.exceptions import TransportQueryError, TransportError

from clients import CriticalConnectorError, RepositoryNotQueryableError

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_ENDPOINT = "https://api.github.com/graphql" # Default, can be overridden for GHES

# Messages GitHub returns when it refuses to list collaborators of an archived repository.
# Matched case-insensitively as substrings of each error message.
NOT_QUERYABLE_ERROR_MESSAGES = (
    "must have administrative access to view collaborators of an archived repository",
    "must have push access to view repository collaborators",
)

def get_github_gql_client(token: str, base_url: Optional[str] = None, retries: int = 3) -> Client:
    """Creates a GitHub GraphQL client."""
    endpoint: str
    if base_url and base_url.strip(): # If a base_url is provided (likely for GHES)
        # Remove common API suffixes if present
        cleaned_base_url = base_url.rstrip('/').replace('/api/v3', '').replace('/api/graphql', '').rstrip('/')
        endpoint = f"{cleaned_base_url}/api/graphql"
    else: # Default to public GitHub
        endpoint = GITHUB_GRAPHQL_ENDPOINT

    transport = RequestsHTTPTransport(
        url=endpoint,
        headers={"Authorization": f"Bearer {token}"},
        verify=True,
        retries=retries,
    )
    return Client(transport=transport, fetch_schema_from_transport=False)

# One repository per page: the collaborator cursor is only meaningful for the
# single repository the repository cursor positions the listing on.
ORGANIZATION_COLLABORATORS_QUERY = gql("""
query OrganizationCollaborators(
    $organization: String!,
    $repositoriesCursor: String,
    $collaboratorsCursor: String,
    $collaboratorsPageSize: Int!
) {
  organization(login: $organization) {
    login
    repositories(first: 1, after: $repositoriesCursor) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        name
        collaborators(first: $collaboratorsPageSize, after: $collaboratorsCursor) {
          pageInfo {
            hasNextPage
            endCursor
          }
          edges {
            permission
            node {
              name
              login
            }
          }
        }
      }
    }
  }
  rateLimit {
    limit
    remaining
    resetAt
  }
}
""")

ENTERPRISE_ORGANIZATIONS_QUERY = gql("""
query EnterpriseOrganizations($enterprise: String!, $organizationsCursor: String) {
  enterprise(slug: $enterprise) {
    organizations(first: 100, after: $organizationsCursor) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        login
      }
    }
  }
}
""")

RATE_LIMIT_QUERY = gql("""
query GetRateLimit {
  rateLimit {
    limit
    cost
    remaining
    resetAt # ISO8601 string timestamp for when the limit resets
  }
}
""")

def safe_get(d, *keys):
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key)
        else:
            return None
    return d

def is_not_queryable_error(query_error: TransportQueryError) -> bool:
    """
    Checks if a TransportQueryError is GitHub refusing to list collaborators
    of an archived repository.
    """
    for error_detail in query_error.errors or []:
        message = error_detail.get('message', '') if isinstance(error_detail, dict) else str(error_detail)
        lowered = (message or '').lower()
        if any(known in lowered for known in NOT_QUERYABLE_ERROR_MESSAGES):
            return True
    return False

def _raise_for_organization_query_error(query_error: TransportQueryError, organization: str, repositories_cursor: Optional[str]):
    errors = query_error.errors or []
    if is_not_queryable_error(query_error):
        repositories_page = safe_get(query_error.data, "organization", "repositories")
        resume_cursor = safe_get(repositories_page, "pageInfo", "endCursor")
        nodes = safe_get(repositories_page, "nodes") or []
        repository_name = nodes[0].get("name") if nodes and isinstance(nodes[0], dict) else None
        if resume_cursor and resume_cursor != repositories_cursor:
            raise RepositoryNotQueryableError(repository_name, resume_cursor, errors=errors) from query_error
        raise CriticalConnectorError(
            f"Repository '{repository_name}' in '{organization}' cannot be queried and the response carries no cursor past it",
            errors=errors,
        ) from query_error
    raise CriticalConnectorError(f"GraphQL query for organization '{organization}' failed: {errors}", errors=errors) from query_error

def fetch_organization_page(
    client: Client,
    organization: str,
    repositories_cursor: Optional[str] = None,
    collaborators_cursor: Optional[str] = None,
    collaborators_page_size: int = 100,
    logger_instance: Optional[logging.Logger] = None
) -> Optional[Dict[str, Any]]:
    """
    Fetches one page of an organization's repositories (a single repository)
    together with one page of that repository's collaborators.

    Returns the `organization` object of the response, or None if the
    organization is not visible to the token.

    Raises:
        RepositoryNotQueryableError: the repository on this page is archived and
            its collaborators cannot be listed; carries the cursor past it.
        CriticalConnectorError: any other GraphQL, transport or HTTP failure.
    """
    current_logger = logger_instance if logger_instance else logger
    params = {
        "organization": organization,
        "repositoriesCursor": repositories_cursor,
        "collaboratorsCursor": collaborators_cursor,
        "collaboratorsPageSize": collaborators_page_size,
    }
    current_logger.debug(
        f"Executing collaborators query for {organization} (repositories cursor: {repositories_cursor}, collaborators cursor: {collaborators_cursor})",
        extra={'organization': organization}
    )
    try:
        result = client.execute(ORGANIZATION_COLLABORATORS_QUERY, variable_values=params)
    except TransportQueryError as tqe:
        _raise_for_organization_query_error(tqe, organization, repositories_cursor)
    except (TransportError, requests.exceptions.RequestException) as e_transport:
        raise CriticalConnectorError(f"Transport failure querying organization '{organization}': {e_transport}") from e_transport

    rate_limit = (result or {}).get("rateLimit")
    if rate_limit:
        current_logger.debug(
            f"GraphQL Rate Limit: Remaining {rate_limit.get('remaining')}/{rate_limit.get('limit')}, resets at {rate_limit.get('resetAt')}",
            extra={'organization': organization}
        )
    return (result or {}).get("organization")

def fetch_enterprise_organizations_page(
    client: Client,
    enterprise: str,
    organizations_cursor: Optional[str] = None,
    logger_instance: Optional[logging.Logger] = None
) -> Optional[Dict[str, Any]]:
    """
    Fetches one page of the organizations that belong to an enterprise.
    Returns the `organizations` connection, or None if the enterprise is not visible.
    """
    current_logger = logger_instance if logger_instance else logger
    params = {"enterprise": enterprise, "organizationsCursor": organizations_cursor}
    current_logger.debug(f"Executing enterprise organizations query for {enterprise}, cursor: {organizations_cursor}")
    try:
        result = client.execute(ENTERPRISE_ORGANIZATIONS_QUERY, variable_values=params)
    except TransportQueryError as tqe:
        raise CriticalConnectorError(f"GraphQL query for enterprise '{enterprise}' failed: {tqe.errors}", errors=tqe.errors) from tqe
    except (TransportError, requests.exceptions.RequestException) as e_transport:
        raise CriticalConnectorError(f"Transport failure querying enterprise '{enterprise}': {e_transport}") from e_transport
    return safe_get(result, "enterprise", "organizations")

def fetch_rate_limit_status_graphql(
    client: Client,
    logger_instance: Optional[logging.Logger] = None
) -> Optional[Dict[str, Any]]:
    """
    Fetches the current GitHub GraphQL API rate limit status.

    Returns:
        A dictionary containing limit, cost, remaining, resetAt and
        seconds_until_reset, or None if the query fails or data is not found.
    """
    current_logger = logger_instance if logger_instance else logger
    current_logger.debug("Executing GraphQL query for rate limit status.")
    try:
        result = client.execute(RATE_LIMIT_QUERY)
    except (TransportQueryError, TransportError, requests.exceptions.RequestException) as e_rl:
        current_logger.error(f"GraphQL query for rate limit status failed: {e_rl}")
        return None

    rate_limit_data = (result or {}).get("rateLimit")
    if not rate_limit_data:
        current_logger.warning("Rate limit data not found in GraphQL response when querying for status.")
        return None

    seconds_until_reset = 0.0
    reset_at_str = rate_limit_data.get("resetAt")
    if reset_at_str:
        try:
            reset_dt = datetime.fromisoformat(reset_at_str.replace('Z', '+00:00'))
            seconds_until_reset = max(0.0, (reset_dt - datetime.now(timezone.utc)).total_seconds())
        except ValueError:
            current_logger.warning(f"Could not parse rate limit resetAt timestamp: {reset_at_str}")
    rate_limit_data["seconds_until_reset"] = round(seconds_until_reset, 2)

    current_logger.info(
        f"GraphQL Rate Limit Status: Remaining {rate_limit_data.get('remaining')}/{rate_limit_data.get('limit')}. "
        f"Resets in: {rate_limit_data['seconds_until_reset']:.2f}s."
    )
    return rate_limit_data
