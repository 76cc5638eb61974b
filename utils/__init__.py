# In utils/__init__.py

from .config import Config, ConfigurationError
from .collection_state import CollectionState, OrganizationAccumulator, RepositoryAccumulator, CollaboratorRecord
from .normalizer import PermissionRecord, normalize_collection_state

__all__ = [
    'Config', 'ConfigurationError',
    'CollectionState', 'OrganizationAccumulator', 'RepositoryAccumulator', 'CollaboratorRecord',
    'PermissionRecord', 'normalize_collection_state',
]
