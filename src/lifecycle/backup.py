"""Backup bucket deploy/destroy.

The bucket must be empty before the engine can delete it, so destroy
purges every object first and only tears down after a complete purge.
"""

import logging
import re
import threading
from typing import Optional

from config import BackupSpec
from engine.state import NotFound, require_outputs
from engine.tofu import PURPOSE_BACKUP
from errors import InfraError
from lifecycle.context import OperationContext
from lifecycle.infra import CONVERGED, CONVERGING, DESTROYED, DESTROYING, FAILED, IDLE
from purge import DEFAULT_MAX_PAGES, ObjectPurger

logger = logging.getLogger(__name__)

BUCKET_NAME_OUTPUT = 'bucketName'
STORAGE_ENDPOINT_OUTPUT = 'storageEndpoint'

_BUCKET_INVALID = re.compile(r'[^a-z0-9-]+')


def derive_bucket_name(cluster: str) -> str:
    """Derive a bucket name from a cluster identifier.

    Bucket names allow lowercase letters, digits and hyphens, 3-63 chars,
    starting and ending with a letter or digit.
    """
    base = _BUCKET_INVALID.sub('-', cluster.lower()).strip('-')
    name = f"{base}-backup" if base else 'backup'
    return name[:63].rstrip('-')


class BackupLifecycleController:
    """Drives the backup template and purges the bucket on destroy."""

    def __init__(
        self,
        ctx: OperationContext,
        max_pages: int = DEFAULT_MAX_PAGES,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.ctx = ctx
        self.max_pages = max_pages
        self.cancel_event = cancel_event
        self.phase = IDLE
        self.error: Optional[InfraError] = None

    def _transition(self, phase: str) -> None:
        logger.debug(f"[{self.ctx.spec.name}] backup: {self.phase} -> {phase}")
        self.phase = phase

    def _fail(self, error: InfraError) -> None:
        self.error = error
        self._transition(FAILED)
        logger.error(f"[{self.ctx.spec.name}] backup {error.stage} failed: {error}")

    def backup_spec(self) -> BackupSpec:
        spec = self.ctx.spec
        return BackupSpec(
            bucket=spec.backup_bucket or derive_bucket_name(spec.name),
            region=spec.backup_region or spec.region,
        )

    def render(self) -> dict:
        """Build the backup config without converging."""
        return self.ctx.provider.build_backup_config(self.backup_spec())

    def deploy(self) -> dict:
        """Deploy the backup bucket and its access resources. Returns the applied config.

        Raises:
            InfraError: Identifying the failed stage
        """
        spec = self.ctx.spec
        backup = self.backup_spec()
        self.error = None
        self._transition(CONVERGING)
        try:
            variables = self.ctx.variables_environment(spec.backup_credentials)
            config = self.ctx.provider.build_backup_config(backup)
            logger.info(f"[{spec.name}] Applying {self.ctx.provider.backup_template} for bucket {backup.bucket}")
            self.ctx.new_terraformer(PURPOSE_BACKUP) \
                .set_variables_environment(variables) \
                .initialize_with(self.ctx.provider.backup_template, config) \
                .apply()
        except InfraError as e:
            self._fail(e)
            raise

        self._transition(CONVERGED)
        return config

    def destroy(self) -> Optional[int]:
        """Purge and destroy the backup bucket.

        Returns:
            Number of purged objects, or None when no prior state was found
            and nothing was destroyed.

        Raises:
            InfraError: Identifying the failed stage; on purge failure the
                engine destroy is never called
        """
        spec = self.ctx.spec
        self.error = None
        self._transition(DESTROYING)
        try:
            terraformer = self.ctx.new_terraformer(PURPOSE_BACKUP)
            result = terraformer.get_state_output_variables(BUCKET_NAME_OUTPUT, STORAGE_ENDPOINT_OUTPUT)
            if isinstance(result, NotFound):
                # Also skips any access resources a failed earlier apply may have created
                logger.info(
                    f"[{spec.name}] Skipping backup bucket deletion because no storage "
                    f"endpoint has been found in the state"
                )
                self._transition(DESTROYED)
                return None

            outputs = require_outputs(result)
            bucket = outputs[BUCKET_NAME_OUTPUT]
            endpoint = outputs[STORAGE_ENDPOINT_OUTPUT]

            credentials = self.ctx.secrets.credentials(spec.backup_credentials)
            variables = self.ctx.variables_environment(spec.backup_credentials)

            logger.info(f"[{spec.name}] Purging bucket {bucket} at {endpoint}")
            store = self.ctx.provider.new_object_store(
                bucket, endpoint, credentials, spec.backup_region or spec.region
            )
            purged = ObjectPurger(store, self.max_pages, self.cancel_event).purge()

            terraformer.set_variables_environment(variables).destroy()
        except InfraError as e:
            self._fail(e)
            raise

        self._transition(DESTROYED)
        logger.info(f"[{spec.name}] Backup infrastructure destroyed ({purged} objects purged)")
        return purged
