"""Provider-agnostic lifecycle controllers."""

from lifecycle.backup import BackupLifecycleController, derive_bucket_name
from lifecycle.context import OperationContext, new_context
from lifecycle.infra import InfraLifecycleController

__all__ = [
    'BackupLifecycleController',
    'InfraLifecycleController',
    'OperationContext',
    'derive_bucket_name',
    'new_context',
]
