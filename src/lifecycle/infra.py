"""Network infrastructure deploy/destroy.

Deploy:  idle -> planning -> converging -> converged | failed
Destroy: idle -> destroying -> destroyed | failed
"""

import logging
from typing import Optional

from engine.tofu import PURPOSE_INFRA
from errors import InfraError, InvalidSpecError
from lifecycle.context import OperationContext
from validation import validate_networks

logger = logging.getLogger(__name__)

IDLE = 'idle'
PLANNING = 'planning'
CONVERGING = 'converging'
CONVERGED = 'converged'
DESTROYING = 'destroying'
DESTROYED = 'destroyed'
FAILED = 'failed'


class InfraLifecycleController:
    """Drives the infra template through the convergence engine.

    Provider specifics come from ``ctx.provider``. Both flows block until
    the engine reports a terminal result; there is no internal retry.
    """

    def __init__(self, ctx: OperationContext):
        self.ctx = ctx
        self.phase = IDLE
        self.error: Optional[InfraError] = None

    def _transition(self, phase: str) -> None:
        logger.debug(f"[{self.ctx.spec.name}] infra: {self.phase} -> {phase}")
        self.phase = phase

    def _fail(self, error: InfraError) -> None:
        self.error = error
        self._transition(FAILED)
        logger.error(f"[{self.ctx.spec.name}] infra {error.stage} failed: {error}")

    def render(self) -> dict:
        """Run discovery and build the infra config without converging.

        Raises:
            InvalidSpecError: If zones and networks do not line up
        """
        spec = self.ctx.spec
        provider = self.ctx.provider
        errors = validate_networks(spec)
        if errors:
            raise InvalidSpecError(errors)

        terraformer = self.ctx.new_terraformer(PURPOSE_INFRA)

        credentials = self.ctx.secrets.credentials(spec.credentials)
        client = provider.new_client(spec.region, credentials)
        network = provider.discover_network(
            spec, client, terraformer.get_state_output_variables, provider.default_internet_charge_type
        )
        ssh_public_key = self.ctx.secrets.ssh_public_key(spec.ssh_key)
        return provider.build_infra_config(spec, network, ssh_public_key)

    def deploy(self) -> dict:
        """Deploy the network infrastructure. Returns the applied config.

        Raises:
            InfraError: Identifying the failed stage
        """
        spec = self.ctx.spec
        self.error = None
        self._transition(PLANNING)
        try:
            config = self.render()
            variables = self.ctx.variables_environment(spec.credentials)

            self._transition(CONVERGING)
            logger.info(f"[{spec.name}] Applying {self.ctx.provider.infra_template}")
            self.ctx.new_terraformer(PURPOSE_INFRA) \
                .set_variables_environment(variables) \
                .initialize_with(self.ctx.provider.infra_template, config) \
                .apply()
        except InfraError as e:
            self._fail(e)
            raise

        self._transition(CONVERGED)
        logger.info(f"[{spec.name}] Infrastructure converged")
        return config

    def destroy(self) -> None:
        """Destroy the network infrastructure.

        Uses the same credential environment as deploy so the engine can
        authenticate against resources created by an earlier call.

        Raises:
            InfraError: Identifying the failed stage
        """
        spec = self.ctx.spec
        self.error = None
        self._transition(DESTROYING)
        try:
            variables = self.ctx.variables_environment(spec.credentials)
            self.ctx.new_terraformer(PURPOSE_INFRA) \
                .set_variables_environment(variables) \
                .destroy()
        except InfraError as e:
            self._fail(e)
            raise

        self._transition(DESTROYED)
        logger.info(f"[{spec.name}] Infrastructure destroyed")
