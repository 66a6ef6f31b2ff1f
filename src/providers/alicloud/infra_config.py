"""Tofu variables for the alicloud-infra and alicloud-backup templates."""

from config import BackupSpec, ClusterInfraSpec
from providers.base import NetworkAttributes


def build_infra_config(spec: ClusterInfraSpec, network: NetworkAttributes, ssh_public_key: str) -> dict:
    """Build the infra template variables.

    Pure function of its inputs; zones keep the order of the cluster spec.

    Raises:
        ValueError: If zones and worker CIDRs differ in length
    """
    zones = [
        {'name': zone, 'cidr': {'worker': worker}}
        for zone, worker in zip(spec.zones, spec.worker_cidrs, strict=True)
    ]

    return {
        'alicloud': {
            'region': spec.region,
        },
        'create': {
            'vpc': network.create,
        },
        'vpc': {
            'cidr': network.cidr,
            'id': network.id,
            'natGatewayID': network.nat_gateway_id,
            'snatTableID': network.snat_table_id,
            'internetChargeType': network.internet_charge_type,
        },
        'clusterName': spec.name,
        'sshPublicKey': ssh_public_key,
        'zones': zones,
    }


def build_backup_config(backup: BackupSpec) -> dict:
    """Build the backup template variables."""
    return {
        'alicloud': {
            'region': backup.region,
        },
        'bucket': {
            'name': backup.bucket,
        },
    }
