# utils/normalizer.py
"""
Flattens a frozen CollectionState into one record per repository collaborator.
"""
import logging
from typing import List, NamedTuple, Optional

from .collection_state import CollectionState

logger = logging.getLogger(__name__)


class PermissionRecord(NamedTuple):
    enterprise: Optional[str]
    organization: str
    repo: str
    user: Optional[str]
    login: str
    permission: str


def normalize_collection_state(state: CollectionState, enterprise: Optional[str] = None) -> List[PermissionRecord]:
    """
    Emits records in organization, then repository, then collaborator order.
    Organizations without an accumulator and collaborators without a
    permission contribute nothing.
    """
    logger.info("Normalizing result.")
    records: List[PermissionRecord] = []
    for organization, accumulator in state.items():
        if accumulator is None:
            continue
        for repository in accumulator.repositories:
            for collaborator in repository.collaborators:
                if not collaborator.permission:
                    continue
                records.append(PermissionRecord(
                    enterprise=enterprise,
                    organization=organization,
                    repo=repository.name,
                    user=collaborator.name,
                    login=collaborator.login,
                    permission=collaborator.permission,
                ))
    logger.info(f"Normalized {len(records)} collaborator permission records from {len(state)} organizations.")
    return records
