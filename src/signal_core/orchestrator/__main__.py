"""Allow running the monitor as: python -m signal_core.orchestrator [--config path] [--once]."""

import argparse
import sys

from signal_core.errors import ConfigurationError
from signal_core.orchestrator.runner import main

parser = argparse.ArgumentParser(description="Signal monitor")
parser.add_argument("--config", default=None, help="Path to config.yaml")
parser.add_argument("--once", action="store_true", help="Run a single scan cycle and exit")
args = parser.parse_args()

try:
    main(config_path=args.config, once=args.once)
except ConfigurationError as exc:
    print(f"configuration error: {exc}", file=sys.stderr)
    sys.exit(2)
except KeyboardInterrupt:
    pass
