"""Network discovery for Alibaba Cloud.

Adopting an existing VPC resolves its CIDR and NAT gateway from the
provider; any failure aborts the deploy. Creating a VPC uses template
placeholders that the engine resolves during apply.
"""

import logging

from config import ClusterInfraSpec
from engine.state import Failed, NotFound
from errors import DiscoveryError, ProviderError
from providers.alicloud.client import DEFAULT_INTERNET_CHARGE_TYPE
from providers.base import DiscoveredNetwork, NetworkAttributes, ProviderClient, StateReader

logger = logging.getLogger(__name__)

VPC_ID_OUTPUT = 'vpc_id'

VPC_ID_PLACEHOLDER = '${alicloud_vpc.vpc.id}'
NAT_GATEWAY_ID_PLACEHOLDER = '${alicloud_nat_gateway.nat_gateway.id}'
SNAT_TABLE_ID_PLACEHOLDER = '${alicloud_nat_gateway.nat_gateway.snat_table_ids}'


def fetch_internet_charge_type(client: ProviderClient, read_state: StateReader,
                               default: str = DEFAULT_INTERNET_CHARGE_TYPE) -> str:
    """Resolve the EIP charge type of the previously converged VPC.

    The VPC id comes from the prior infra state. No prior state means
    nothing has been converged yet, which yields ``default``.

    Raises:
        DiscoveryError: If the state query or the provider query fails
    """
    result = read_state(VPC_ID_OUTPUT)
    if isinstance(result, NotFound):
        logger.info(f"No {VPC_ID_OUTPUT} in infra state, using internet charge type {default}")
        return default
    if isinstance(result, Failed):
        raise DiscoveryError(f"Reading {VPC_ID_OUTPUT} from infra state failed: {result.cause}")

    vpc_id = result[VPC_ID_OUTPUT]
    try:
        return client.get_internet_charge_type(vpc_id)
    except ProviderError as e:
        raise DiscoveryError(f"Internet charge type lookup for {vpc_id} failed: {e}") from e


def discover_existing_network(client: ProviderClient, network_id: str) -> tuple[str, str, str]:
    """Resolve (cidr, nat_gateway_id, snat_table_id) of an existing VPC.

    Raises:
        DiscoveryError: If any lookup fails
    """
    try:
        cidr = client.get_cidr(network_id)
    except ProviderError as e:
        raise DiscoveryError(f"CIDR lookup for {network_id} failed: {e}") from e

    try:
        nat_gateway_id, snat_table_id = client.get_nat_gateway_info(network_id)
    except ProviderError as e:
        raise DiscoveryError(f"NAT gateway lookup for {network_id} failed: {e}") from e

    logger.info(f"Adopting VPC {network_id} ({cidr}), NAT gateway {nat_gateway_id}")
    return cidr, nat_gateway_id, snat_table_id


def discover_network(spec: ClusterInfraSpec, client: ProviderClient, read_state: StateReader,
                     default_internet_charge_type: str = DEFAULT_INTERNET_CHARGE_TYPE) -> NetworkAttributes:
    """Resolve network attributes for the infra config."""
    if spec.adopts_network:
        cidr, nat_gateway_id, snat_table_id = discover_existing_network(client, spec.network_id)
        discovered = DiscoveredNetwork(
            id=spec.network_id,
            cidr=cidr,
            nat_gateway_id=nat_gateway_id,
            snat_table_id=snat_table_id,
            internet_charge_type=fetch_internet_charge_type(client, read_state, default_internet_charge_type),
        )
        return NetworkAttributes.adopted(discovered)

    return NetworkAttributes(
        create=True,
        id=VPC_ID_PLACEHOLDER,
        cidr=spec.network_cidr,
        nat_gateway_id=NAT_GATEWAY_ID_PLACEHOLDER,
        snat_table_id=SNAT_TABLE_ID_PLACEHOLDER,
        internet_charge_type=fetch_internet_charge_type(client, read_state, default_internet_charge_type),
    )
