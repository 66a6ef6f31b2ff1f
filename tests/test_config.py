"""Tests for config.py - site-config loading and secrets."""

import pytest

from config import (
    ConfigError,
    SecretStore,
    get_site_config_dir,
    list_clusters,
    load_cluster_spec,
    load_secrets,
)
from errors import SecretNotFoundError


class TestSiteConfigDir:
    """Test get_site_config_dir resolution."""

    def test_env_var(self, site_config_dir, monkeypatch):
        monkeypatch.setenv('INFRA_SITE_CONFIG', str(site_config_dir))
        assert get_site_config_dir() == site_config_dir

    def test_env_var_missing_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv('INFRA_SITE_CONFIG', str(tmp_path / 'nope'))
        with pytest.raises(ConfigError, match='does not exist'):
            get_site_config_dir()


class TestListClusters:
    """Test list_clusters."""

    def test_lists_sorted(self, site_config_dir):
        assert list_clusters(site_config_dir) == ['adopt', 'demo']

    def test_no_clusters_dir(self, tmp_path):
        assert list_clusters(tmp_path) == []


class TestLoadClusterSpec:
    """Test load_cluster_spec."""

    def test_create_cluster_with_defaults(self, site_config_dir):
        spec = load_cluster_spec('demo', site_config_dir)

        assert spec.name == 'demo'
        assert spec.region == 'cn-beijing'
        assert spec.provider == 'alicloud'
        assert spec.zones == ('cn-beijing-f', 'cn-beijing-g')
        assert spec.worker_cidrs == ('10.1.0.0/19', '10.1.32.0/19')
        assert spec.network_cidr == '10.1.0.0/16'
        assert spec.adopts_network is False
        assert spec.credentials == 'shoot-creds'
        assert spec.backup_credentials == 'seed-creds'
        assert spec.ssh_key == 'demo'
        assert spec.backup_bucket is None

    def test_adopt_cluster_overrides(self, site_config_dir):
        spec = load_cluster_spec('adopt', site_config_dir)

        assert spec.region == 'cn-hangzhou'
        assert spec.network_id == 'net-123'
        assert spec.adopts_network is True
        assert spec.backup_region == 'cn-shanghai'
        assert spec.backup_bucket == 'adopt-etcd-backups'

    def test_unknown_cluster(self, site_config_dir):
        with pytest.raises(ConfigError) as exc_info:
            load_cluster_spec('missing', site_config_dir)
        assert 'adopt, demo' in str(exc_info.value)

    def test_invalid_cluster(self, site_config_dir):
        (site_config_dir / 'clusters/broken.yaml').write_text("""
zones: [cn-beijing-f, cn-beijing-g]
networks:
  vpc:
    cidr: 10.1.0.0/16
  workers:
    - 10.2.0.0/19
""")
        with pytest.raises(ConfigError) as exc_info:
            load_cluster_spec('broken', site_config_dir)
        message = str(exc_info.value)
        assert 'Zone count (2)' in message
        assert 'not inside 10.1.0.0/16' in message

    def test_missing_region(self, tmp_path):
        (tmp_path / 'clusters').mkdir()
        (tmp_path / 'clusters/bare.yaml').write_text("zones: [a]\n")
        with pytest.raises(ConfigError, match='no region'):
            load_cluster_spec('bare', tmp_path)


class TestSecrets:
    """Test SecretStore and load_secrets."""

    def test_load_secrets(self, site_config_dir):
        store = load_secrets(site_config_dir)
        assert store.credentials('seed-creds')['accessKeyID'] == 'AK-SEED'
        assert store.ssh_public_key('adopt').startswith('ssh-ed25519')

    def test_missing_secrets_file(self, tmp_path):
        with pytest.raises(ConfigError, match='secrets.yaml'):
            load_secrets(tmp_path)

    def test_unknown_credentials(self, secrets):
        with pytest.raises(SecretNotFoundError, match='credentials.nope'):
            secrets.credentials('nope')

    def test_empty_credentials_ref(self, secrets):
        with pytest.raises(SecretNotFoundError):
            secrets.credentials('')

    def test_ssh_key_prefixed_ref(self, secrets):
        assert secrets.ssh_public_key('ssh_keys.demo') == 'ssh-rsa AAAAB3Nza demo@cluster'

    def test_unknown_ssh_key(self, secrets):
        with pytest.raises(SecretNotFoundError, match='ssh_keys.other'):
            secrets.ssh_public_key('other')

    def test_read_only(self, secrets):
        creds = secrets.credentials('shoot-creds')
        with pytest.raises(TypeError):
            creds['accessKeyID'] = 'changed'

    def test_repr_hides_values(self):
        store = SecretStore({'credentials': {'x': {'accessKeySecret': 'SK-HIDDEN'}}})
        assert 'SK-HIDDEN' not in repr(store)
