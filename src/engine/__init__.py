"""Convergence engine (OpenTofu) driver."""

from engine.state import Failed, Found, NotFound, StateLookup, require_outputs
from engine.tofu import PURPOSE_BACKUP, PURPOSE_INFRA, Terraformer, render_config
from engine.variables import DEFAULT_CREDENTIAL_MAPPING, generate_variables_environment

__all__ = [
    'Failed',
    'Found',
    'NotFound',
    'StateLookup',
    'require_outputs',
    'PURPOSE_BACKUP',
    'PURPOSE_INFRA',
    'Terraformer',
    'render_config',
    'DEFAULT_CREDENTIAL_MAPPING',
    'generate_variables_environment',
]
