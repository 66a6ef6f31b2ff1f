"""Shared pytest fixtures for cluster-infra-driver tests."""

import dataclasses
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from config import ClusterInfraSpec, SecretStore  # noqa: E402
from engine.state import NotFound  # noqa: E402
from errors import StorageError  # noqa: E402
from storage import ObjectPage  # noqa: E402


class FakeTerraformer:
    """In-memory stand-in for engine.tofu.Terraformer recording every call."""

    def __init__(self, lookup=None, events=None, apply_error=None, destroy_error=None):
        self.lookup = lookup if lookup is not None else NotFound()
        self.events = events if events is not None else []
        self.apply_error = apply_error
        self.destroy_error = destroy_error
        self.variables = None
        self.template_id = None
        self.config = None

    def set_variables_environment(self, variables):
        self.variables = dict(variables)
        return self

    def initialize_with(self, template_id, config):
        self.template_id = template_id
        self.config = config
        return self

    def apply(self):
        self.events.append('apply')
        if self.apply_error:
            raise self.apply_error

    def destroy(self):
        self.events.append('destroy')
        if self.destroy_error:
            raise self.destroy_error

    def get_state_output_variables(self, *names):
        self.events.append(('output', names))
        return self.lookup


class FakeObjectStore:
    """Object store serving pre-defined pages and recording list/delete calls."""

    def __init__(self, pages, events=None, fail_delete_on=None, fail_list_on=None):
        self.pages = list(pages)
        self.events = events if events is not None else []
        self.fail_delete_on = fail_delete_on
        self.fail_list_on = fail_list_on
        self.list_calls = []
        self.delete_calls = []

    def list_objects(self, continuation=None):
        self.list_calls.append(continuation)
        self.events.append('list')
        if self.fail_list_on == len(self.list_calls):
            raise StorageError("list failed")
        return self.pages[len(self.list_calls) - 1]

    def delete_objects(self, keys):
        self.delete_calls.append(list(keys))
        self.events.append('delete')
        if self.fail_delete_on == len(self.delete_calls):
            raise StorageError("delete failed")


def make_pages(*flags, keys_per_page=2):
    """Build pages whose truncated flags follow ``flags``."""
    pages = []
    for idx, truncated in enumerate(flags):
        keys = tuple(f"snapshots/{idx}-{n}" for n in range(keys_per_page))
        pages.append(ObjectPage(keys=keys, truncated=truncated,
                                continuation=f"token-{idx + 1}" if truncated else None))
    return pages


@pytest.fixture
def fake_terraformer():
    """FakeTerraformer class (call it to build an instance)."""
    return FakeTerraformer


@pytest.fixture
def fake_store():
    """FakeObjectStore class (call it to build an instance)."""
    return FakeObjectStore


@pytest.fixture
def pages():
    """Page builder: pages(True, True, False) -> three ObjectPages."""
    return make_pages


@pytest.fixture
def secrets():
    """Secret store with infra and backup credentials plus an SSH key."""
    return SecretStore({
        'credentials': {
            'shoot-creds': {'accessKeyID': 'AK-SHOOT', 'accessKeySecret': 'SK-SHOOT'},
            'seed-creds': {'accessKeyID': 'AK-SEED', 'accessKeySecret': 'SK-SEED'},
        },
        'ssh_keys': {
            'demo': 'ssh-rsa AAAAB3Nza demo@cluster',
        },
    })


@pytest.fixture
def create_spec():
    """Spec creating a fresh VPC."""
    return ClusterInfraSpec(
        name='demo',
        region='cn-beijing',
        zones=('cn-beijing-f', 'cn-beijing-g'),
        worker_cidrs=('10.1.0.0/19', '10.1.32.0/19'),
        network_cidr='10.1.0.0/16',
        credentials='shoot-creds',
        ssh_key='demo',
        backup_credentials='seed-creds',
    )


@pytest.fixture
def adopt_spec():
    """Spec adopting existing VPC net-123."""
    return ClusterInfraSpec(
        name='demo',
        region='cn-beijing',
        zones=('cn-beijing-f',),
        worker_cidrs=('10.0.0.0/19',),
        network_id='net-123',
        credentials='shoot-creds',
        ssh_key='demo',
        backup_credentials='seed-creds',
    )


@pytest.fixture
def provider_client():
    """Provider client mock describing VPC net-123."""
    client = MagicMock()
    client.get_cidr.return_value = '10.0.0.0/16'
    client.get_nat_gateway_info.return_value = ('ngw-1', 'snat-1')
    client.get_internet_charge_type.return_value = 'PayByBandwidth'
    return client


@pytest.fixture
def make_context(secrets, provider_client):
    """Factory building an OperationContext over fakes.

    Returns (ctx, terraformers) where terraformers maps purpose -> FakeTerraformer.
    """
    from lifecycle.context import OperationContext
    from providers.alicloud import ALICLOUD

    def _make(spec, infra=None, backup=None, store=None, client=None):
        terraformers = {
            'infra': infra or FakeTerraformer(),
            'backup': backup or FakeTerraformer(),
        }
        provider = dataclasses.replace(
            ALICLOUD,
            new_client=lambda region, creds: client or provider_client,
            new_object_store=lambda bucket, endpoint, creds, region=None: store,
        )
        ctx = OperationContext(
            spec=spec,
            secrets=secrets,
            provider=provider,
            new_terraformer=lambda purpose: terraformers[purpose],
        )
        return ctx, terraformers

    return _make


@pytest.fixture
def site_config_dir(tmp_path):
    """Create temporary site-config directory structure.

    Creates minimal site-config with:
    - site.yaml (defaults)
    - secrets.yaml (mock secrets)
    - clusters/demo.yaml (creates VPC)
    - clusters/adopt.yaml (adopts existing VPC)
    """
    (tmp_path / 'clusters').mkdir(parents=True, exist_ok=True)

    (tmp_path / 'site.yaml').write_text("""
defaults:
  provider: alicloud
  region: cn-beijing
  credentials: shoot-creds
  backup:
    credentials: seed-creds
""")

    (tmp_path / 'secrets.yaml').write_text("""
credentials:
  shoot-creds:
    accessKeyID: AK-SHOOT
    accessKeySecret: SK-SHOOT
  seed-creds:
    accessKeyID: AK-SEED
    accessKeySecret: SK-SEED
ssh_keys:
  demo: "ssh-rsa AAAAB3Nza demo@cluster"
  adopt: "ssh-ed25519 AAAAC3Nza adopt@cluster"
""")

    (tmp_path / 'clusters/demo.yaml').write_text("""
zones:
  - cn-beijing-f
  - cn-beijing-g
networks:
  vpc:
    cidr: 10.1.0.0/16
  workers:
    - 10.1.0.0/19
    - 10.1.32.0/19
""")

    (tmp_path / 'clusters/adopt.yaml').write_text("""
region: cn-hangzhou
zones:
  - cn-hangzhou-h
networks:
  vpc:
    id: net-123
  workers:
    - 10.0.0.0/19
backup:
  region: cn-shanghai
  bucket: adopt-etcd-backups
""")

    return tmp_path
