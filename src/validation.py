"""Cluster spec validation.

Checks run before any provider or engine call, catching configuration
issues early with actionable error messages.
"""

import ipaddress
import logging

from config import ClusterInfraSpec

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# CIDR checks
# -----------------------------------------------------------------------------

def _parse_network(value: str, label: str, errors: list[str]):
    """Parse a CIDR string, appending an error on failure."""
    try:
        return ipaddress.ip_network(value, strict=True)
    except (TypeError, ValueError) as e:
        errors.append(f"{label} is not a valid CIDR: {value!r} ({e})")
        return None


def validate_networks(spec: ClusterInfraSpec) -> list[str]:
    """Validate zone/worker alignment and CIDR containment.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors: list[str] = []

    if not spec.zones:
        errors.append("At least one zone is required")
    if len(spec.zones) != len(spec.worker_cidrs):
        errors.append(
            f"Zone count ({len(spec.zones)}) does not match worker CIDR count "
            f"({len(spec.worker_cidrs)})\n"
            f"  networks.workers[i] must be the worker CIDR for zones[i]"
        )

    if spec.network_id is None and not spec.network_cidr:
        errors.append(
            "Either networks.vpc.id (adopt existing network) or "
            "networks.vpc.cidr (create network) is required"
        )

    network = None
    if spec.network_cidr:
        network = _parse_network(spec.network_cidr, "networks.vpc.cidr", errors)

    for idx, cidr in enumerate(spec.worker_cidrs):
        worker = _parse_network(cidr, f"networks.workers[{idx}]", errors)
        if worker is None or network is None:
            continue
        if worker.version != network.version or not worker.subnet_of(network):
            errors.append(f"networks.workers[{idx}] {cidr} is not inside {spec.network_cidr}")

    return errors


def validate_cluster_spec(spec: ClusterInfraSpec) -> list[str]:
    """Validate a cluster spec.

    Returns:
        List of validation error messages (empty if valid)
    """
    from providers import list_providers

    errors = []
    if spec.provider not in list_providers():
        errors.append(
            f"Unknown provider '{spec.provider}'. "
            f"Available: {', '.join(list_providers())}"
        )
    if not spec.credentials:
        errors.append(f"No credentials reference for cluster '{spec.name}'")
    errors.extend(validate_networks(spec))

    for error in errors:
        logger.debug(f"[{spec.name}] validation: {error}")
    return errors
