"""Read-only Alibaba Cloud queries via the aliyun CLI."""

import logging
import os

from common import parse_json_output, run_command
from errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_INTERNET_CHARGE_TYPE = 'PayByTraffic'


class AlicloudClient:
    """Runs read-only VPC API calls through the ``aliyun`` CLI.

    Credentials travel in the child environment only, never on the command
    line, so they do not show up in process listings or debug logs.
    """

    def __init__(self, region: str, access_key_id: str, access_key_secret: str,
                 binary: str = 'aliyun', timeout: int = 60):
        self.region = region
        self.binary = binary
        self.timeout = timeout
        self._access_key_id = access_key_id
        self._access_key_secret = access_key_secret

    def __repr__(self) -> str:
        return f"AlicloudClient(region={self.region!r})"

    def _env(self) -> dict:
        return {
            **os.environ,
            'ALIBABA_CLOUD_ACCESS_KEY_ID': self._access_key_id,
            'ALIBABA_CLOUD_ACCESS_KEY_SECRET': self._access_key_secret,
            'ALIBABA_CLOUD_REGION_ID': self.region,
        }

    def _call(self, product: str, api: str, **params) -> dict:
        cmd = [self.binary, product, api, '--RegionId', self.region]
        for key, value in params.items():
            cmd.extend([f'--{key}', str(value)])
        rc, out, err = run_command(cmd, timeout=self.timeout, env=self._env())
        if rc != 0:
            raise ProviderError(f"{product} {api} failed: {err.strip() or out.strip()}")
        try:
            return parse_json_output(out)
        except ValueError as e:
            raise ProviderError(f"{product} {api}: {e}") from e

    def _nat_gateway(self, vpc_id: str) -> dict:
        data = self._call('vpc', 'DescribeNatGateways', VpcId=vpc_id)
        gateways = (data.get('NatGateways') or {}).get('NatGateway') or []
        if not gateways:
            raise ProviderError(f"No NAT gateway found in VPC {vpc_id}")
        return gateways[0]

    def get_cidr(self, network_id: str) -> str:
        """Get the CIDR block of a VPC."""
        data = self._call('vpc', 'DescribeVpcAttribute', VpcId=network_id)
        cidr = data.get('CidrBlock')
        if not cidr:
            raise ProviderError(f"VPC {network_id} has no CIDR block")
        return cidr

    def get_nat_gateway_info(self, network_id: str) -> tuple[str, str]:
        """Get (nat_gateway_id, snat_table_id) of the VPC's NAT gateway."""
        gateway = self._nat_gateway(network_id)
        snat_tables = (gateway.get('SnatTableIds') or {}).get('SnatTableId') or []
        if not snat_tables:
            raise ProviderError(f"NAT gateway {gateway.get('NatGatewayId')} has no SNAT table")
        return gateway['NatGatewayId'], snat_tables[0]

    def get_internet_charge_type(self, network_id: str) -> str:
        """Get the charge type of the EIP bound to the VPC's NAT gateway.

        Returns the default charge type when no EIP is bound.
        """
        gateway = self._nat_gateway(network_id)
        data = self._call(
            'vpc', 'DescribeEipAddresses',
            AssociatedInstanceType='Nat',
            AssociatedInstanceId=gateway['NatGatewayId'],
        )
        eips = (data.get('EipAddresses') or {}).get('EipAddress') or []
        if not eips:
            logger.debug(f"No EIP bound to {gateway['NatGatewayId']}, using {DEFAULT_INTERNET_CHARGE_TYPE}")
            return DEFAULT_INTERNET_CHARGE_TYPE
        return eips[0].get('InternetChargeType') or DEFAULT_INTERNET_CHARGE_TYPE
