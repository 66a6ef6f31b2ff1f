"""Cluster infrastructure actions."""

from actions.lifecycle import (
    DeployBackupAction,
    DeployInfraAction,
    DestroyBackupAction,
    DestroyInfraAction,
)

__all__ = [
    'DeployBackupAction',
    'DeployInfraAction',
    'DestroyBackupAction',
    'DestroyInfraAction',
]
