"""
NGAC Policy Engine - Entry Point

Builds the sample consent policy and prints the permissions a user holds
on each data asset.
"""

import argparse
import logging
import sys

from .builders.consent import ConsentPolicyBuilder, sample_definition
from .config import load_config

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="NGAC policy engine demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Permissions of the sample user on every asset
  python -m ngac_policy

  # Single asset, custom configuration
  python -m ngac_policy --asset asset-1 --config ./ngac.yaml

  # Enable debug logging
  python -m ngac_policy --debug
"""
    )

    parser.add_argument(
        '--config', '-c',
        help='Path to ngac.yaml (default: search working directory)'
    )

    parser.add_argument(
        '--user', '-u',
        default='John Doe',
        help='User to evaluate (default: John Doe)'
    )

    parser.add_argument(
        '--asset', '-a',
        help='Asset key to evaluate (default: all assets)'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)

    config = load_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else config.log_level_value,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    policy = ConsentPolicyBuilder(config).build(sample_definition())

    asset_keys = [args.asset] if args.asset else sorted(policy.assets)
    try:
        for key in asset_keys:
            permissions = policy.permissions(args.user, key)
            name = policy.graph.get_node(policy.assets[key]).name
            print(f"{args.user} -> {key} ({name}): {', '.join(sorted(permissions)) or '-'}")
    except KeyError as e:
        logger.error(f"Lookup failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
