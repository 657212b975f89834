"""
fieldcapture CLI - Main entry point.

Replays scripted capture sessions against the headless backend and prints
the value the field ends up holding.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

from fieldcapture_geo.config import WidgetConfig
from fieldcapture_geo.logging import create_logger

from .replay import replay


def load_yaml_script(script_path: str) -> Dict[str, Any]:
    """
    Load a YAML replay script.

    Raises:
        FileNotFoundError: If the script doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(script_path)

    if not path.exists():
        raise FileNotFoundError(f"Script not found: {script_path}")

    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {script_path}: {e}")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="fieldcapture - Replay a scripted geopoint capture session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay a trace drawing
  fieldcapture-replay scripts/trace.yaml

  # Use a widget config file and start from a stored value
  fieldcapture-replay scripts/manual.yaml --config widget.yaml \\
      --value '{"lat": 1.0, "lng": 2.0}'
"""
    )
    parser.add_argument('script', help='Path to replay script YAML')
    parser.add_argument('--config', help='Path to widget config YAML')
    parser.add_argument('--value', help='Stored field value as JSON (overrides the script)')
    parser.add_argument('--geo-format', help='Capture mode (overrides the script)')
    parser.add_argument('--verbose', action='store_true', help='Emit structured logs to stderr')

    args = parser.parse_args(argv)

    try:
        script = load_yaml_script(args.script)
        if not isinstance(script, dict):
            raise ValueError(f"Replay script must be a mapping: {args.script}")
        if args.value is not None:
            script['value'] = json.loads(args.value)
        if args.geo_format is not None:
            script['geo_format'] = args.geo_format

        config = WidgetConfig.from_yaml(Path(args.config)) if args.config else WidgetConfig()
        logger = create_logger("replay", level=logging.INFO if args.verbose else logging.ERROR)
        logger.logger.propagate = False

        result = asyncio.run(replay(script, config=config, logger=logger))
        print(json.dumps(result.to_dict(), indent=2))

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
