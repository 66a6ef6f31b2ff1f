"""Provider capability set.

Lifecycle controllers are provider-agnostic: everything provider specific
(discovery, config building, read-only provider client, object store) is
reached through a ProviderCapabilities value selected by the cluster's
provider tag.
"""

from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Protocol, runtime_checkable

from config import BackupSpec, ClusterInfraSpec
from engine.state import StateLookup
from storage import ObjectStore


@dataclass(frozen=True)
class DiscoveredNetwork:
    """Attributes of an existing network resolved from the provider."""
    id: str
    cidr: str
    nat_gateway_id: str
    snat_table_id: str
    internet_charge_type: str


@dataclass(frozen=True)
class NetworkAttributes:
    """Network identifiers and attributes handed to the config builder.

    For a fresh network the identifiers are template placeholders that the
    engine resolves itself; for an adopted network they are discovered.
    """
    create: bool
    id: str
    cidr: str
    nat_gateway_id: str
    snat_table_id: str
    internet_charge_type: str

    @classmethod
    def adopted(cls, network: DiscoveredNetwork) -> 'NetworkAttributes':
        return cls(
            create=False,
            id=network.id,
            cidr=network.cidr,
            nat_gateway_id=network.nat_gateway_id,
            snat_table_id=network.snat_table_id,
            internet_charge_type=network.internet_charge_type,
        )


@runtime_checkable
class ProviderClient(Protocol):
    """Read-only provider queries used by network discovery."""

    def get_cidr(self, network_id: str) -> str:
        ...

    def get_nat_gateway_info(self, network_id: str) -> tuple[str, str]:
        """Return (nat_gateway_id, snat_table_id)."""
        ...

    def get_internet_charge_type(self, network_id: str) -> str:
        ...


# read_state(*names) -> StateLookup against the infra state
StateReader = Callable[..., StateLookup]


@dataclass(frozen=True)
class ProviderCapabilities:
    """Everything a lifecycle controller needs from one cloud provider."""
    name: str
    infra_template: str
    backup_template: str
    default_internet_charge_type: str
    discover_network: Callable[[ClusterInfraSpec, ProviderClient, StateReader, str], NetworkAttributes]
    build_infra_config: Callable[[ClusterInfraSpec, NetworkAttributes, str], dict]
    build_backup_config: Callable[[BackupSpec], dict]
    new_client: Callable[[str, Mapping[str, str]], ProviderClient]
    new_object_store: Callable[[str, str, Mapping[str, str], Optional[str]], ObjectStore]
    credential_mapping: Mapping[str, str] = field(default_factory=dict)
