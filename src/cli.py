#!/usr/bin/env python3
"""CLI entry point for cluster-infra-driver.

Noun-action subcommands:
- infra:   cluster-infra infra deploy -C demo
- backup:  cluster-infra backup destroy -C demo --yes
- cluster: cluster-infra cluster list

Nouns:
- infra: Cluster network infrastructure (deploy/destroy)
- backup: Backup bucket infrastructure (deploy/destroy)
- cluster: Cluster spec utilities (list/validate)
"""

import argparse
import json
import logging
import subprocess
import sys
from pathlib import Path

from actions import DeployBackupAction, DeployInfraAction, DestroyBackupAction, DestroyInfraAction
from common import ActionResult
from config import ConfigError, list_clusters, load_cluster_spec, load_secrets

NOUN_COMMANDS = {
    "infra": "Cluster network infrastructure (deploy/destroy)",
    "backup": "Backup bucket infrastructure (deploy/destroy)",
    "cluster": "Cluster spec utilities (list/validate)",
}

LIFECYCLE_ACTIONS = {
    "infra": {"deploy": DeployInfraAction, "destroy": DestroyInfraAction},
    "backup": {"deploy": DeployBackupAction, "destroy": DestroyBackupAction},
}


def get_version():
    """Get version from git tags (do not use hardcoded VERSION constant)."""
    try:
        result = subprocess.run(
            ['git', 'describe', '--tags', '--abbrev=0'],
            capture_output=True, text=True,
            cwd=Path(__file__).parent,
            check=False,
        )
        return result.stdout.strip() if result.returncode == 0 else 'dev'
    except OSError:
        return 'dev'


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def print_usage():
    """Print top-level usage."""
    print(f"cluster-infra {get_version()}")
    print()
    print("Usage: cluster-infra <noun> <action> [options]")
    print()
    print("Commands:")
    for noun, desc in NOUN_COMMANDS.items():
        print(f"  {noun:<12} {desc}")
    print()
    print("Run 'cluster-infra <noun> --help' for command-specific options.")
    print()
    print("Examples:")
    print("  cluster-infra infra deploy -C demo")
    print("  cluster-infra infra deploy -C demo --dry-run")
    print("  cluster-infra backup destroy -C demo --yes")
    print("  cluster-infra cluster validate -C demo")


def _lifecycle_parser(noun: str, verb: str) -> argparse.ArgumentParser:
    """Build argument parser for lifecycle verbs."""
    parser = argparse.ArgumentParser(
        prog=f'cluster-infra {noun} {verb}',
        description=f'{verb.capitalize()} {noun} for a cluster',
    )
    parser.add_argument(
        '--cluster', '-C',
        required=True,
        help=f'Cluster name from site-config/clusters/. Available: {", ".join(list_clusters())}',
    )
    parser.add_argument(
        '--state-root',
        type=Path,
        help='Engine state root (default: .states/)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging',
    )
    parser.add_argument(
        '--json-output',
        action='store_true',
        help='Output structured JSON to stdout (logs to stderr)',
    )
    if verb == 'deploy':
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Render the engine configuration without applying it',
        )
    else:
        parser.add_argument(
            '--yes', '-y',
            action='store_true',
            help='Skip confirmation prompt',
        )
    return parser


def _configure_logging(args) -> None:
    """Apply --verbose and --json-output to the root logger."""
    if getattr(args, 'json_output', False):
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(stderr_handler)

    if getattr(args, 'verbose', False):
        logging.getLogger().setLevel(logging.DEBUG)


def _confirm(prompt: str) -> bool:
    """Ask for confirmation on stdin."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def _emit(result: ActionResult, args, noun: str, verb: str) -> int:
    """Print an action result and return the exit code."""
    if args.json_output:
        print(json.dumps({
            'noun': noun,
            'action': verb,
            'cluster': args.cluster,
            'success': result.success,
            'message': result.message,
            'stage': result.stage or None,
            'duration': round(result.duration, 2),
            'context': result.context_updates,
        }, indent=2, default=str))
    elif getattr(args, 'dry_run', False) and result.success:
        print(json.dumps(result.context_updates.get('config', {}), indent=2, sort_keys=True))
    else:
        status = 'OK' if result.success else 'FAILED'
        print(f"[{status}] {result.message} ({result.duration:.1f}s)")
    return 0 if result.success else 1


def dispatch_lifecycle(noun: str, argv: list) -> int:
    """Dispatch 'infra' and 'backup' nouns to their deploy/destroy actions.

    Args:
        noun: 'infra' or 'backup'
        argv: Arguments after the noun (e.g., ['deploy', '-C', 'demo'])

    Returns:
        Exit code
    """
    actions = LIFECYCLE_ACTIONS[noun]
    if not argv or argv[0].startswith('-'):
        print(f"Usage: cluster-infra {noun} <action> [options]")
        print()
        print("Actions:")
        print(f"  deploy    {NOUN_COMMANDS[noun]}: create or converge")
        print(f"  destroy   {NOUN_COMMANDS[noun]}: tear down")
        return 1 if not argv else 0

    verb = argv[0]
    if verb not in actions:
        print(f"Error: Unknown {noun} action '{verb}'")
        return 1

    args = _lifecycle_parser(noun, verb).parse_args(argv[1:])
    _configure_logging(args)

    try:
        spec = load_cluster_spec(args.cluster)
        secrets = load_secrets()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if verb == 'destroy' and not args.yes:
        if not _confirm(f"Destroy {noun} for cluster '{spec.name}'?"):
            print("Aborted.")
            return 1

    kwargs = {'state_root': args.state_root}
    if verb == 'deploy':
        kwargs['dry_run'] = args.dry_run
    action = actions[verb](**kwargs)

    logger.info(f"Running {noun} {verb} for cluster {spec.name} ({spec.provider}, {spec.region})")
    result = action.run(spec, secrets)
    return _emit(result, args, noun, verb)


def dispatch_cluster(argv: list) -> int:
    """Dispatch 'cluster' noun (list/validate)."""
    if not argv or argv[0] not in ('list', 'validate'):
        print("Usage: cluster-infra cluster <list|validate> [options]")
        return 1 if not argv or not argv[0].startswith('-') else 0

    verb = argv[0]
    if verb == 'list':
        clusters = list_clusters()
        if not clusters:
            print("No clusters configured")
        for name in clusters:
            print(name)
        return 0

    parser = argparse.ArgumentParser(prog='cluster-infra cluster validate')
    parser.add_argument('--cluster', '-C', required=True, help='Cluster name')
    args = parser.parse_args(argv[1:])
    try:
        spec = load_cluster_spec(args.cluster)
    except ConfigError as e:
        print(f"[FAILED] {e}")
        return 1
    print(f"[OK] {spec.name}: {spec.provider} {spec.region}, "
          f"{len(spec.zones)} zone(s), "
          f"{'adopts ' + spec.network_id if spec.adopts_network else 'creates ' + str(spec.network_cidr)}")
    return 0


def main(argv=None):
    """CLI entry point, dispatching to noun-action handlers."""
    argv = sys.argv[1:] if argv is None else argv

    if not argv or argv[0] in ('-h', '--help'):
        print_usage()
        return 0
    if argv[0] == '--version':
        print(f"cluster-infra {get_version()}")
        return 0

    noun = argv[0]
    if noun in LIFECYCLE_ACTIONS:
        return dispatch_lifecycle(noun, argv[1:])
    if noun == 'cluster':
        return dispatch_cluster(argv[1:])

    print(f"Error: Unknown command '{noun}'")
    print_usage()
    return 1


if __name__ == '__main__':
    sys.exit(main())
