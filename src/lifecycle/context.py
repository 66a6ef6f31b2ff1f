"""Per-invocation operation context."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from config import ClusterInfraSpec, SecretStore
from engine.tofu import Terraformer
from engine.variables import generate_variables_environment
from providers import get_provider
from providers.base import ProviderCapabilities


@dataclass(frozen=True)
class OperationContext:
    """Everything one deploy/destroy call needs.

    Built fresh for each call and never mutated; engine state is re-read
    on demand through ``new_terraformer`` rather than cached here.
    """
    spec: ClusterInfraSpec
    secrets: SecretStore
    provider: ProviderCapabilities
    new_terraformer: Callable[[str], Terraformer]

    def variables_environment(self, credentials_ref: str) -> dict:
        """Engine variables for a credential reference (same for deploy and destroy)."""
        credentials = self.secrets.credentials(credentials_ref)
        return generate_variables_environment(credentials, self.provider.credential_mapping)


def new_context(
    spec: ClusterInfraSpec,
    secrets: SecretStore,
    state_root: Optional[Path] = None,
    templates_dir: Optional[Path] = None,
    provider: Optional[ProviderCapabilities] = None,
) -> OperationContext:
    """Build an OperationContext for one lifecycle call.

    Args:
        spec: Cluster spec
        secrets: Secret store
        state_root: Engine state root (default: .states/ in the base dir)
        templates_dir: Template root (default: templates/ in the base dir)
        provider: Capabilities override (default: looked up by spec.provider)
    """
    def terraformer_factory(purpose: str) -> Terraformer:
        return Terraformer(spec.name, purpose, templates_dir=templates_dir, state_root=state_root)

    return OperationContext(
        spec=spec,
        secrets=secrets,
        provider=provider or get_provider(spec.provider),
        new_terraformer=terraformer_factory,
    )
