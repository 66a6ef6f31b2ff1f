"""Cluster configuration management.

Configuration is loaded from site-config YAML files:
- site.yaml: Site-wide defaults (provider, region, credential references)
- secrets.yaml: All sensitive values (decrypted)
- clusters/*.yaml: Per-cluster infrastructure specification

The merge order is: site → cluster, with secrets resolved by key reference.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from errors import SecretNotFoundError

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration error."""


@dataclass(frozen=True)
class ClusterInfraSpec:
    """Infrastructure specification for one cluster.

    ``zones`` and ``worker_cidrs`` are index-aligned: entry i of each
    refers to the same availability zone.
    """
    name: str
    region: str
    zones: tuple
    worker_cidrs: tuple
    provider: str = 'alicloud'
    network_id: Optional[str] = None
    network_cidr: Optional[str] = None
    credentials: str = ''
    ssh_key: str = ''
    backup_bucket: Optional[str] = None
    backup_region: Optional[str] = None
    backup_credentials: str = ''

    @property
    def adopts_network(self) -> bool:
        return self.network_id is not None


@dataclass(frozen=True)
class BackupSpec:
    """Backup bucket specification."""
    bucket: str
    region: str


class SecretStore:
    """Read-only keyed lookup over secrets.yaml content.

    Layout:
        credentials:
          <ref>: {accessKeyID: ..., accessKeySecret: ...}
        ssh_keys:
          <ref>: "ssh-rsa AAAA..."
    """

    def __init__(self, data: Optional[Mapping] = None):
        self._data = MappingProxyType(dict(data or {}))

    def credentials(self, ref: str) -> Mapping[str, str]:
        """Get a credential set by reference.

        Raises:
            SecretNotFoundError: If the reference is unknown
        """
        creds = (self._data.get('credentials') or {}).get(ref)
        if not ref or creds is None:
            raise SecretNotFoundError(f"credentials.{ref}")
        return MappingProxyType({k: str(v) for k, v in creds.items()})

    def ssh_public_key(self, ref: str) -> str:
        """Get an SSH public key by reference ("ssh_keys.name" or "name")."""
        key_id = ref.replace('ssh_keys.', '') if ref.startswith('ssh_keys.') else ref
        keys = self._data.get('ssh_keys') or {}
        if key_id not in keys:
            raise SecretNotFoundError(f"ssh_keys.{key_id}")
        return str(keys[key_id]).strip()

    def __repr__(self) -> str:
        return f"SecretStore(refs={sorted(self._data.keys())})"


def _parse_yaml(path: Path) -> dict:
    """Parse a YAML file and return contents."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_base_dir() -> Path:
    """Get the cluster-infra-driver directory."""
    return Path(__file__).parent.parent  # src/ -> cluster-infra-driver/


def get_site_config_dir() -> Path:
    """Discover site-config directory.

    Resolution order:
    1. $INFRA_SITE_CONFIG environment variable
    2. ../site-config/ sibling directory (dev workspace)
    3. /usr/local/etc/cluster-infra/ (FHS-compliant install)
    """
    if env_path := os.environ.get('INFRA_SITE_CONFIG'):
        path = Path(env_path)
        if path.exists():
            return path
        raise ConfigError(f"INFRA_SITE_CONFIG={env_path} does not exist")

    sibling = get_base_dir().parent / 'site-config'
    if sibling.exists():
        return sibling

    fhs_path = Path('/usr/local/etc/cluster-infra')
    if fhs_path.exists():
        return fhs_path

    raise ConfigError(
        "site-config not found. "
        "Set INFRA_SITE_CONFIG or clone site-config as sibling directory."
    )


def list_clusters(site_config: Optional[Path] = None) -> list[str]:
    """List available clusters from site-config/clusters/*.yaml."""
    try:
        site_config = site_config or get_site_config_dir()
    except ConfigError:
        return []
    clusters_dir = site_config / 'clusters'
    if not clusters_dir.exists():
        return []
    return sorted(f.stem for f in clusters_dir.glob('*.yaml') if f.is_file())


def _spec_from_dict(name: str, data: dict, defaults: dict) -> ClusterInfraSpec:
    """Build a ClusterInfraSpec from merged cluster YAML (site → cluster)."""
    networks = data.get('networks') or {}
    vpc = networks.get('vpc') or {}
    backup = data.get('backup') or {}
    backup_defaults = defaults.get('backup') or {}

    region = data.get('region', defaults.get('region'))
    if not region:
        raise ConfigError(f"Cluster '{name}' has no region (set region in cluster or site defaults)")

    cluster_name = str(data.get('cluster', name))
    return ClusterInfraSpec(
        name=cluster_name,
        region=str(region),
        zones=tuple(str(z) for z in data.get('zones') or ()),
        worker_cidrs=tuple(str(c) for c in networks.get('workers') or ()),
        provider=str(data.get('provider', defaults.get('provider', 'alicloud'))),
        network_id=vpc.get('id'),
        network_cidr=vpc.get('cidr'),
        credentials=str(data.get('credentials', defaults.get('credentials', ''))),
        ssh_key=str(data.get('ssh_key', cluster_name)),
        backup_bucket=backup.get('bucket'),
        backup_region=backup.get('region', backup_defaults.get('region')),
        backup_credentials=str(backup.get('credentials', backup_defaults.get('credentials', ''))),
    )


def load_cluster_spec(name: str, site_config: Optional[Path] = None) -> ClusterInfraSpec:
    """Load and validate the infrastructure spec for a named cluster.

    Raises:
        ConfigError: If the cluster file is missing or the spec is invalid
    """
    from validation import validate_cluster_spec

    site_config = site_config or get_site_config_dir()
    cluster_file = site_config / 'clusters' / f'{name}.yaml'
    if not cluster_file.exists():
        available = list_clusters(site_config)
        raise ConfigError(
            f"Cluster '{name}' not found: {cluster_file}\n"
            f"Available clusters: {', '.join(available) if available else 'none configured'}"
        )

    defaults = {}
    site_file = site_config / 'site.yaml'
    if site_file.exists():
        defaults = _parse_yaml(site_file).get('defaults', {}) or {}

    spec = _spec_from_dict(name, _parse_yaml(cluster_file), defaults)
    errors = validate_cluster_spec(spec)
    if errors:
        raise ConfigError(f"Invalid cluster '{name}':\n  " + "\n  ".join(errors))
    logger.debug(f"Loaded cluster spec {spec.name} from {cluster_file}")
    return spec


def load_secrets(site_config: Optional[Path] = None) -> SecretStore:
    """Load all secrets from site-config/secrets.yaml."""
    site_config = site_config or get_site_config_dir()
    secrets_file = site_config / 'secrets.yaml'
    if not secrets_file.exists():
        raise ConfigError(
            "secrets.yaml not found or not decrypted. "
            "Run: cd ../site-config && make decrypt"
        )
    return SecretStore(_parse_yaml(secrets_file))
