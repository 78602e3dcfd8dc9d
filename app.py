#!/usr/bin/env python3
"""
Crypto Market Radar - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Thin wrapper over orchestrator.cli; every mode and flag is
documented there.

============================================================
USAGE
============================================================
Direct execution:
    python app.py --mode analyze --horizon long
    python app.py --mode serve --port 8000

With PM2:
    pm2 start app.py --interpreter python --name market-radar -- --mode serve

Environment-based configuration:
    RADAR_STRATEGY=race RADAR_MARKET_TTL_SECONDS=30 python app.py --mode market

============================================================
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orchestrator.cli import main


if __name__ == "__main__":
    sys.exit(main())
