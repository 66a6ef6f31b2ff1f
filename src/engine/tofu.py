"""OpenTofu convergence engine driver.

Each cluster+purpose pair owns an isolated state directory:

    .states/{cluster}/{purpose}/
        terraform.tfstate   state file (explicit -state=)
        config.json         template id + non-secret variables of the last apply
        data/               TF_DATA_DIR (modules/providers)

TF_DATA_DIR must NOT contain terraform.tfstate, otherwise OpenTofu's legacy
code path reads it and rejects version 4 states.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from common import parse_json_output, run_command
from config import get_base_dir
from engine.state import Failed, Found, NotFound, StateLookup
from errors import ConvergenceFailure

logger = logging.getLogger(__name__)

PURPOSE_INFRA = 'infra'
PURPOSE_BACKUP = 'backup'


def render_config(config: dict) -> str:
    """Render a config as canonical JSON (stable key order)."""
    return json.dumps(config, sort_keys=True, indent=2) + '\n'


def create_temp_tfvars(cluster: str, purpose: str) -> Path:
    """Create a unique temporary file for tfvars.

    Caller is responsible for cleanup.
    """
    fd, path = tempfile.mkstemp(prefix=f'tfvars-{cluster}-{purpose}-', suffix='.json')
    os.close(fd)
    return Path(path)


class Terraformer:
    """Drives tofu init/apply/destroy/output for one cluster and purpose.

    Calls block until tofu exits. Callers serialize invocations for the same
    cluster and purpose; nothing here arbitrates concurrent callers.
    """

    def __init__(
        self,
        cluster: str,
        purpose: str,
        templates_dir: Optional[Path] = None,
        state_root: Optional[Path] = None,
        binary: str = 'tofu',
        timeout_init: int = 120,
        timeout_apply: int = 900,
    ):
        self.cluster = cluster
        self.purpose = purpose
        self.templates_dir = templates_dir or get_base_dir() / 'templates'
        self.state_dir = (state_root or get_base_dir() / '.states') / cluster / purpose
        self.data_dir = self.state_dir / 'data'
        self.state_file = self.state_dir / 'terraform.tfstate'
        self.config_file = self.state_dir / 'config.json'
        self.binary = binary
        self.timeout_init = timeout_init
        self.timeout_apply = timeout_apply
        self._variables: dict = {}
        self._template_id: Optional[str] = None
        self._config: Optional[dict] = None

    def __repr__(self) -> str:
        return f"Terraformer(cluster={self.cluster!r}, purpose={self.purpose!r})"

    @property
    def name(self) -> str:
        return f"{self.cluster}.{self.purpose}"

    def set_variables_environment(self, variables: dict) -> 'Terraformer':
        """Inject sensitive variables (credentials) for subsequent calls."""
        self._variables = dict(variables)
        return self

    def initialize_with(self, template_id: str, config: dict) -> 'Terraformer':
        """Bind a named template to a rendered configuration."""
        self._template_id = template_id
        self._config = config
        return self

    def _env(self) -> dict:
        return {**os.environ, 'TF_DATA_DIR': str(self.data_dir), **self._variables}

    def _template_dir(self, template_id: str, stage: str) -> Path:
        tofu_dir = self.templates_dir / template_id
        if not tofu_dir.exists():
            raise ConvergenceFailure(f"Template directory not found: {tofu_dir}", stage=stage)
        return tofu_dir

    def _init(self, tofu_dir: Path) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"[{self.name}] Running tofu init...")
        rc, _, err = run_command(
            [self.binary, 'init', '-input=false'],
            cwd=tofu_dir, timeout=self.timeout_init, env=self._env()
        )
        if rc != 0:
            raise ConvergenceFailure(f"tofu init failed: {err}", stage='init')

    def _run_with_vars(self, verb: str, tofu_dir: Path, config: dict) -> tuple[int, str, str]:
        tfvars_path = create_temp_tfvars(self.cluster, self.purpose)
        try:
            tfvars_path.write_text(render_config(config), encoding='utf-8')
            logger.info(f"[{self.name}] Running tofu {verb} (state: {self.state_file})...")
            cmd = [
                self.binary, verb, '-auto-approve', '-input=false',
                f'-state={self.state_file}', f'-var-file={tfvars_path}',
            ]
            return run_command(cmd, cwd=tofu_dir, timeout=self.timeout_apply, env=self._env())
        finally:
            if tfvars_path.exists():
                tfvars_path.unlink()
                logger.debug(f"[{self.name}] Cleaned up temp tfvars: {tfvars_path}")

    def _record_config(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(
            render_config({'template': self._template_id, 'variables': self._config}),
            encoding='utf-8',
        )

    def _load_recorded_config(self) -> tuple[str, dict]:
        if not self.config_file.exists():
            raise ConvergenceFailure(
                f"State exists but no recorded configuration at {self.config_file}",
                stage='destroy',
            )
        recorded = json.loads(self.config_file.read_text(encoding='utf-8'))
        return recorded['template'], recorded['variables']

    def apply(self) -> None:
        """Converge live infrastructure toward the bound config.

        Raises:
            ConvergenceFailure: If the engine is not initialized or tofu fails
        """
        if self._template_id is None or self._config is None:
            raise ConvergenceFailure(f"[{self.name}] apply called before initialize_with", stage='init')

        tofu_dir = self._template_dir(self._template_id, 'init')
        self._init(tofu_dir)

        # Recorded before apply so a partially failed apply can still be destroyed
        self._record_config()

        rc, _, err = self._run_with_vars('apply', tofu_dir, self._config)
        if rc != 0:
            raise ConvergenceFailure(f"tofu apply failed: {err}", stage='apply')
        logger.info(f"[{self.name}] tofu apply completed")

    def destroy(self) -> None:
        """Tear down previously converged infrastructure.

        Succeeds without calling tofu when no state exists.

        Raises:
            ConvergenceFailure: If tofu fails
        """
        if not self.state_file.exists():
            logger.info(f"[{self.name}] No state file found, nothing to destroy")
            return

        template_id, config = self._load_recorded_config()
        tofu_dir = self._template_dir(template_id, 'destroy')
        self._init(tofu_dir)

        rc, _, err = self._run_with_vars('destroy', tofu_dir, config)
        if rc != 0:
            raise ConvergenceFailure(f"tofu destroy failed: {err}", stage='destroy')
        logger.info(f"[{self.name}] tofu destroy completed")

    def get_state_output_variables(self, *names: str) -> StateLookup:
        """Read named outputs from the last successful apply."""
        if not self.state_file.exists():
            return NotFound(tuple(names))

        rc, out, err = run_command(
            [self.binary, 'output', '-json', f'-state={self.state_file}'],
            cwd=self.state_dir, timeout=self.timeout_init, env=self._env()
        )
        if rc != 0:
            return Failed(f"tofu output failed: {err}")
        try:
            outputs = parse_json_output(out)
        except ValueError as e:
            return Failed(f"tofu output: {e}")

        values = {}
        for name in names:
            value = (outputs.get(name) or {}).get('value')
            if value not in (None, ''):
                values[name] = value
        missing = tuple(n for n in names if n not in values)
        if missing:
            logger.debug(f"[{self.name}] State outputs not found: {', '.join(missing)}")
            return NotFound(missing)
        return Found(values)
