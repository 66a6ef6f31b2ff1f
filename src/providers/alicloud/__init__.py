"""Alibaba Cloud provider capabilities."""

from typing import Mapping, Optional

from engine.variables import DEFAULT_CREDENTIAL_MAPPING
from errors import SecretNotFoundError
from providers import register_provider
from providers.alicloud.client import DEFAULT_INTERNET_CHARGE_TYPE, AlicloudClient
from providers.alicloud.discovery import discover_network
from providers.alicloud.infra_config import build_backup_config, build_infra_config
from providers.base import ProviderCapabilities
from storage import S3BucketStore


def _access_keys(credentials: Mapping[str, str]) -> tuple[str, str]:
    for key in ('accessKeyID', 'accessKeySecret'):
        if key not in credentials:
            raise SecretNotFoundError(key)
    return credentials['accessKeyID'], credentials['accessKeySecret']


def new_client(region: str, credentials: Mapping[str, str]) -> AlicloudClient:
    access_key_id, access_key_secret = _access_keys(credentials)
    return AlicloudClient(region=region, access_key_id=access_key_id, access_key_secret=access_key_secret)


def new_object_store(bucket: str, endpoint: str, credentials: Mapping[str, str],
                     region: Optional[str] = None) -> S3BucketStore:
    access_key_id, access_key_secret = _access_keys(credentials)
    return S3BucketStore(
        bucket=bucket,
        endpoint=endpoint,
        access_key_id=access_key_id,
        access_key_secret=access_key_secret,
        region=region,
    )


ALICLOUD = register_provider(ProviderCapabilities(
    name='alicloud',
    infra_template='alicloud-infra',
    backup_template='alicloud-backup',
    default_internet_charge_type=DEFAULT_INTERNET_CHARGE_TYPE,
    discover_network=discover_network,
    build_infra_config=build_infra_config,
    build_backup_config=build_backup_config,
    new_client=new_client,
    new_object_store=new_object_store,
    credential_mapping=DEFAULT_CREDENTIAL_MAPPING,
))
