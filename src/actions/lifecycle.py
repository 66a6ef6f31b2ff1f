"""Lifecycle actions wrapping the infra and backup controllers."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common import ActionResult
from config import ClusterInfraSpec, ConfigError, SecretStore
from errors import InfraError
from lifecycle import BackupLifecycleController, InfraLifecycleController, new_context

logger = logging.getLogger(__name__)


def _failure(name: str, error: Exception, start: float) -> ActionResult:
    """Turn a lifecycle error into a failed ActionResult naming the stage."""
    stage = getattr(error, 'stage', 'config')
    logger.error(f"[{name}] {stage} failed: {error}")
    return ActionResult(
        success=False,
        message=f"{stage} failed: {error}",
        duration=time.time() - start,
        stage=stage,
    )


@dataclass
class DeployInfraAction:
    """Deploy cluster network infrastructure (or render it with dry_run)."""
    name: str = 'deploy-infra'
    dry_run: bool = False
    state_root: Optional[Path] = None
    templates_dir: Optional[Path] = None

    def run(self, spec: ClusterInfraSpec, secrets: SecretStore) -> ActionResult:
        start = time.time()
        try:
            ctx = new_context(spec, secrets, state_root=self.state_root, templates_dir=self.templates_dir)
            controller = InfraLifecycleController(ctx)
            config = controller.render() if self.dry_run else controller.deploy()
        except (InfraError, ConfigError) as e:
            return _failure(self.name, e, start)

        verb = 'rendered' if self.dry_run else 'deployed'
        return ActionResult(
            success=True,
            message=f"Infrastructure {verb} for {spec.name}",
            duration=time.time() - start,
            context_updates={'config': config},
        )


@dataclass
class DestroyInfraAction:
    """Destroy cluster network infrastructure."""
    name: str = 'destroy-infra'
    state_root: Optional[Path] = None
    templates_dir: Optional[Path] = None

    def run(self, spec: ClusterInfraSpec, secrets: SecretStore) -> ActionResult:
        start = time.time()
        try:
            ctx = new_context(spec, secrets, state_root=self.state_root, templates_dir=self.templates_dir)
            InfraLifecycleController(ctx).destroy()
        except (InfraError, ConfigError) as e:
            return _failure(self.name, e, start)

        return ActionResult(
            success=True,
            message=f"Infrastructure destroyed for {spec.name}",
            duration=time.time() - start,
        )


@dataclass
class DeployBackupAction:
    """Deploy the backup bucket (or render it with dry_run)."""
    name: str = 'deploy-backup'
    dry_run: bool = False
    state_root: Optional[Path] = None
    templates_dir: Optional[Path] = None

    def run(self, spec: ClusterInfraSpec, secrets: SecretStore) -> ActionResult:
        start = time.time()
        try:
            ctx = new_context(spec, secrets, state_root=self.state_root, templates_dir=self.templates_dir)
            controller = BackupLifecycleController(ctx)
            config = controller.render() if self.dry_run else controller.deploy()
            bucket = controller.backup_spec().bucket
        except (InfraError, ConfigError) as e:
            return _failure(self.name, e, start)

        verb = 'rendered' if self.dry_run else 'deployed'
        return ActionResult(
            success=True,
            message=f"Backup bucket {bucket} {verb} for {spec.name}",
            duration=time.time() - start,
            context_updates={'config': config, 'bucket': bucket},
        )


@dataclass
class DestroyBackupAction:
    """Purge and destroy the backup bucket."""
    name: str = 'destroy-backup'
    state_root: Optional[Path] = None
    templates_dir: Optional[Path] = None

    def run(self, spec: ClusterInfraSpec, secrets: SecretStore) -> ActionResult:
        start = time.time()
        try:
            ctx = new_context(spec, secrets, state_root=self.state_root, templates_dir=self.templates_dir)
            purged = BackupLifecycleController(ctx).destroy()
        except (InfraError, ConfigError) as e:
            return _failure(self.name, e, start)

        if purged is None:
            message = f"No backup state found for {spec.name}, nothing to destroy"
        else:
            message = f"Backup infrastructure destroyed for {spec.name} ({purged} objects purged)"
        return ActionResult(
            success=True,
            message=message,
            duration=time.time() - start,
            context_updates={'purged': purged or 0, 'skipped': purged is None},
        )
