"""Tests for providers/alicloud/infra_config.py."""

import dataclasses

import pytest

from config import BackupSpec
from engine.tofu import render_config
from providers.alicloud.discovery import VPC_ID_PLACEHOLDER
from providers.alicloud.infra_config import build_backup_config, build_infra_config
from providers.base import DiscoveredNetwork, NetworkAttributes

SSH_KEY = 'ssh-rsa AAAAB3Nza demo@cluster'


def _adopted():
    return NetworkAttributes.adopted(DiscoveredNetwork(
        id='net-123',
        cidr='10.0.0.0/16',
        nat_gateway_id='ngw-1',
        snat_table_id='snat-1',
        internet_charge_type='PayByTraffic',
    ))


class TestBuildInfraConfig:
    """Test build_infra_config."""

    def test_idempotent(self, adopt_spec):
        """Identical input renders byte-identical output."""
        first = render_config(build_infra_config(adopt_spec, _adopted(), SSH_KEY))
        second = render_config(build_infra_config(adopt_spec, _adopted(), SSH_KEY))
        assert first.encode() == second.encode()

    def test_adopted_network_block(self, adopt_spec):
        config = build_infra_config(adopt_spec, _adopted(), SSH_KEY)

        assert config['create'] == {'vpc': False}
        assert config['vpc'] == {
            'id': 'net-123',
            'cidr': '10.0.0.0/16',
            'natGatewayID': 'ngw-1',
            'snatTableID': 'snat-1',
            'internetChargeType': 'PayByTraffic',
        }

    def test_fresh_network_block(self, create_spec):
        network = NetworkAttributes(
            create=True,
            id=VPC_ID_PLACEHOLDER,
            cidr='10.1.0.0/16',
            nat_gateway_id='${alicloud_nat_gateway.nat_gateway.id}',
            snat_table_id='${alicloud_nat_gateway.nat_gateway.snat_table_ids}',
            internet_charge_type='PayByTraffic',
        )
        config = build_infra_config(create_spec, network, SSH_KEY)

        assert config['create'] == {'vpc': True}
        assert config['vpc']['cidr'] == '10.1.0.0/16'
        assert config['vpc']['id'].startswith('${')

    def test_zones_keep_order(self, create_spec):
        config = build_infra_config(create_spec, _adopted(), SSH_KEY)
        assert config['zones'] == [
            {'name': 'cn-beijing-f', 'cidr': {'worker': '10.1.0.0/19'}},
            {'name': 'cn-beijing-g', 'cidr': {'worker': '10.1.32.0/19'}},
        ]

    def test_top_level(self, adopt_spec):
        config = build_infra_config(adopt_spec, _adopted(), SSH_KEY)
        assert config['alicloud'] == {'region': 'cn-beijing'}
        assert config['clusterName'] == 'demo'
        assert config['sshPublicKey'] == SSH_KEY


def test_build_backup_config():
    assert build_backup_config(BackupSpec(bucket='demo-backup', region='cn-shanghai')) == {
        'alicloud': {'region': 'cn-shanghai'},
        'bucket': {'name': 'demo-backup'},
    }


@pytest.mark.parametrize('workers', [('10.1.0.0/19',), ('10.1.0.0/19', '10.1.32.0/19', '10.1.64.0/19')])
def test_zone_worker_mismatch(create_spec, workers):
    spec = dataclasses.replace(create_spec, worker_cidrs=workers)
    with pytest.raises(ValueError):
        build_infra_config(spec, _adopted(), SSH_KEY)
