"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the market radar.

- Provides argparse-based CLI
- One-shot modes print a snapshot and exit
- watch keeps caches warm on an interval
- serve runs the JSON API with the refresher in the background
- Loads configuration from YAML, environment and CLI flags

============================================================
USAGE
============================================================
python -m orchestrator.cli --mode market --strategy race
python -m orchestrator.cli --mode analyze --horizon long --json
python -m orchestrator.cli --mode history --symbol BTC --timeframe 1W
python -m orchestrator.cli --mode serve

============================================================
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from core.config import AppConfig, set_config
from dashboard.services import RadarService
from data_sources.coordinator import FailoverStrategy
from data_sources.exceptions import AllSourcesExhaustedError
from data_sources.models import Timeframe
from orchestrator.scheduler import PeriodicRefresher
from scoring_engine.models import AnalysisResult, Horizon


MODES = ("market", "analyze", "history", "news", "watch", "serve")

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="market-radar",
        description="Crypto market snapshot, news context and heuristic analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  market    - Print the top assets (cache, failover, synthetic fallback)
  analyze   - Print best / avoid / trump picks for a horizon
  history   - Print price history for --symbol
  news      - Print merged headlines
  watch     - Refresh market and news every --interval seconds
  serve     - Run the JSON API with background refresh

Examples:
  %(prog)s --mode market --strategy race
  %(prog)s --mode analyze --horizon long --json
  %(prog)s --mode history --symbol ETH --timeframe 1M
        """
    )

    # --------------------------------------------------------
    # Mode Selection
    # --------------------------------------------------------
    parser.add_argument(
        "--mode", "-m",
        type=str,
        choices=MODES,
        default="analyze",
        help="Runtime mode (default: analyze)",
    )

    # --------------------------------------------------------
    # Analysis Options
    # --------------------------------------------------------
    analysis_group = parser.add_argument_group("Analysis Options")

    analysis_group.add_argument(
        "--horizon",
        type=str,
        choices=[h.value for h in Horizon],
        help="Investment horizon (default: from config)",
    )

    analysis_group.add_argument(
        "--strategy",
        type=str,
        choices=[s.value for s in FailoverStrategy],
        help="Failover strategy (default: from config)",
    )

    # --------------------------------------------------------
    # History Options
    # --------------------------------------------------------
    history_group = parser.add_argument_group("History Options")

    history_group.add_argument(
        "--symbol",
        type=str,
        help="Asset symbol (required for history mode)",
    )

    history_group.add_argument(
        "--coin-id",
        type=str,
        help="Upstream coin id, e.g. 'bitcoin' (optional)",
    )

    history_group.add_argument(
        "--timeframe",
        type=str,
        default=Timeframe.D1.value,
        help=f"Chart timeframe, one of {[t.value for t in Timeframe]} (default: 1D)",
    )

    # --------------------------------------------------------
    # Runtime Options
    # --------------------------------------------------------
    runtime_group = parser.add_argument_group("Runtime Options")

    runtime_group.add_argument(
        "--interval",
        type=float,
        metavar="SECONDS",
        help="Refresh interval for watch/serve (default: from config, 900)",
    )

    runtime_group.add_argument(
        "--host",
        type=str,
        help="API host for serve mode (default: from config)",
    )

    runtime_group.add_argument(
        "--port",
        type=int,
        help="API port for serve mode (default: from config)",
    )

    runtime_group.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="YAML config file (default: environment variables)",
    )

    # --------------------------------------------------------
    # Output Options
    # --------------------------------------------------------
    output_group = parser.add_argument_group("Output Options")

    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of a table",
    )

    output_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """
    Validate CLI arguments.

    Args:
        args: Parsed arguments

    Returns:
        List of validation errors
    """
    errors = []

    if args.mode == "history" and not args.symbol:
        errors.append("--symbol is required for history mode")

    try:
        Timeframe.parse(args.timeframe)
    except ValueError as e:
        errors.append(str(e))

    if args.interval is not None and args.interval <= 0:
        errors.append("--interval must be positive")

    if args.port is not None and not 0 < args.port < 65536:
        errors.append("--port must be between 1 and 65535")

    if args.config and not Path(args.config).is_file():
        errors.append(f"Config file not found: {args.config}")

    return errors


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> AppConfig:
    """
    Build application configuration from file/environment and CLI flags.

    CLI flags override the loaded values.
    """
    config = AppConfig.from_yaml(Path(args.config)) if args.config else AppConfig.from_env()

    overrides: dict[str, Any] = {}
    if args.strategy:
        overrides["strategy"] = args.strategy
    if args.horizon:
        overrides["default_horizon"] = args.horizon
    if args.interval is not None:
        overrides["refresh_interval_seconds"] = args.interval
    if args.host:
        overrides["api_host"] = args.host
    if args.port is not None:
        overrides["api_port"] = args.port

    return dataclasses.replace(config, **overrides) if overrides else config


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True,
    )


# ============================================================
# OUTPUT
# ============================================================

def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _fmt_change(change: Optional[float]) -> str:
    return f"{change:+.2f}%" if change is not None else "n/a"


def print_market(assets, as_json: bool = False) -> None:
    if as_json:
        _print_json([a.to_dict() for a in assets])
        return
    source = assets[0].source_name if assets else "-"
    print(f"{len(assets)} assets via {source}")
    print(f"{'#':>3}  {'SYMBOL':<8} {'PRICE':>14} {'24H':>9} {'VOLUME':>16}")
    for i, asset in enumerate(assets, 1):
        print(
            f"{i:>3}  {asset.symbol:<8} {asset.price:>14,.4f} "
            f"{_fmt_change(asset.change_24h):>9} {asset.volume_24h:>16,.0f}"
        )


def print_analysis(result: AnalysisResult, as_json: bool = False) -> None:
    if as_json:
        _print_json(result.to_dict())
        return
    print(f"Horizon: {result.horizon.value} | Global sentiment: {result.global_sentiment:+.2f}")
    for title, bucket in (("BEST", result.best), ("AVOID", result.avoid), ("TRUMP CARDS", result.trump)):
        print()
        print(title)
        print("-" * 60)
        if not bucket:
            print("  (none)")
        for pick in bucket:
            print(
                f"  {pick.asset.symbol:<8} fav={pick.score.favorability:+.3f} "
                f"risk={pick.score.risk:.2f} asym={pick.score.asymmetry:.2f} "
                f"conf={pick.analysis.confidence}%  {pick.analysis.summary}"
            )


def print_history(symbol: str, timeframe: Timeframe, points, as_json: bool = False) -> None:
    if as_json:
        _print_json([{"timestamp": p.timestamp, "price": p.price, "volume": p.volume} for p in points])
        return
    print(f"{symbol.upper()} {timeframe.value}: {len(points)} points")
    if points:
        first, last = points[0], points[-1]
        change = (last.price / first.price - 1) * 100 if first.price else 0.0
        low = min(p.price for p in points)
        high = max(p.price for p in points)
        print(f"  first={first.price:,.4f} last={last.price:,.4f} change={change:+.2f}%")
        print(f"  low={low:,.4f} high={high:,.4f}")


def print_news(news, as_json: bool = False) -> None:
    if as_json:
        _print_json([item.to_dict() for item in news])
        return
    print(f"{len(news)} headlines")
    for item in news:
        print(f"  [{item.published_at:%Y-%m-%d %H:%M}] {item.source_name}: {item.title}")


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def run_mode(args: argparse.Namespace, service: RadarService) -> int:
    """Execute one-shot or watch mode against a wired service."""
    config = service.config

    if args.mode == "market":
        print_market(await service.market(args.strategy), args.json)
    elif args.mode == "analyze":
        print_analysis(await service.analysis(args.horizon, args.strategy), args.json)
    elif args.mode == "history":
        timeframe = Timeframe.parse(args.timeframe)
        points = await service.history(args.symbol, timeframe, args.coin_id)
        print_history(args.symbol, timeframe, points, args.json)
    elif args.mode == "news":
        print_news(await service.news(), args.json)
    elif args.mode == "watch":
        refresher = PeriodicRefresher(service, config.refresh_interval_seconds)
        await refresher.start()
        try:
            await refresher.wait()
        finally:
            await refresher.stop()
    return 0


async def async_main(args: argparse.Namespace, config: Optional[AppConfig] = None) -> int:
    """
    Async main entry point.

    Args:
        args: Parsed arguments
        config: Prebuilt configuration (default: build from args)

    Returns:
        Exit code
    """
    config = config if config is not None else build_config(args)
    service = RadarService.from_config(config)

    try:
        return await run_mode(args, service)
    except AllSourcesExhaustedError as e:
        print(f"Error: connection lost, retry ({', '.join(e.attempted_sources)})", file=sys.stderr)
        return 2
    except asyncio.CancelledError:
        logging.info("Interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await service.close()


def serve(config: AppConfig) -> int:
    """Run the API until interrupted."""
    import uvicorn
    from dashboard.api import create_app

    service = RadarService.from_config(config)
    refresher = PeriodicRefresher(service, config.refresh_interval_seconds)
    app = create_app(service, refresher=refresher)
    uvicorn.run(app, host=config.api_host, port=config.api_port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(args.log_level)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    set_config(config)

    if args.mode in ("watch", "serve"):
        print_banner(args, config)

    if args.mode == "serve":
        return serve(config)

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130


def print_banner(args: argparse.Namespace, config: AppConfig) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  CRYPTO MARKET RADAR")
    print("=" * 60)
    print(f"  Mode:       {args.mode}")
    print(f"  Strategy:   {config.strategy}")
    print(f"  Horizon:    {config.default_horizon}")
    print(f"  Interval:   {config.refresh_interval_seconds}s")
    if args.mode == "serve":
        print(f"  API:        http://{config.api_host}:{config.api_port}")
    print("=" * 60)
    print()


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
