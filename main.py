"""
Main entry point for the SMC market analyzer
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Union

import pandas as pd
import requests
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import AppSettings, load_settings
from smc_analyzer import SMCAnalysis, AnalysisError
from smc_analyzer.alerts import build_zone_alerts, check_alerts
from smc_analyzer.data_downloader import HyperliquidDataDownloader
from smc_analyzer.data_loader import load_csv
from smc_analyzer.multi_timeframe import TIMEFRAMES, analyze_timeframes, timeframe_confluence
from smc_analyzer.position_sizing import calculate_position_size, format_price, format_currency

console = Console()

BIAS_STYLES = {'bullish': 'bold green', 'bearish': 'bold red', 'sideways': 'bold yellow'}


def setup_logging(level: str = "INFO", log_file: str = None):
    """Setup logging configuration"""
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # Suppress noisy loggers
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def render_analysis(analysis: SMCAnalysis, settings: AppSettings) -> None:
    """Print one analysis as rich panels and tables"""
    structure = analysis.structure
    style = BIAS_STYLES.get(structure.bias, 'white')
    header = (
        f"[{style}]{structure.bias.upper()}[/]  {structure.last_event or 'no event'}"
        f"  prob {structure.probability}%  strength {structure.strength}\n"
        f"Price {format_price(analysis.current_price)}  profile {analysis.profile}"
    )
    if structure.break_level is not None:
        header += f"  break level {format_price(structure.break_level)}"
    console.print(Panel(header, title=f"{settings.coin} {analysis.timeframe}", box=box.ROUNDED))

    zones_table = Table(title="Zones", box=box.SIMPLE)
    zones_table.add_column("Type", style="cyan")
    zones_table.add_column("Low", style="yellow")
    zones_table.add_column("High", style="yellow")
    zones_table.add_column("Strength")
    zones_table.add_column("Age")
    zones_table.add_column("Dist %", style="magenta")
    zones_table.add_column("Tested")
    zones_table.add_column("Fib")
    for zone in analysis.all_zones():
        zones_table.add_row(
            zone.kind, format_price(zone.low), format_price(zone.high), zone.strength, zone.age,
            f"{zone.distance:.2f}", "yes" if zone.tested else "no", "yes" if zone.confluence else ""
        )
    console.print(zones_table)

    if analysis.confluences:
        conf_table = Table(title="Confluences", box=box.SIMPLE)
        conf_table.add_column("Type", style="cyan")
        conf_table.add_column("Level", style="yellow")
        conf_table.add_column("Strength")
        conf_table.add_column("Description")
        for confluence in analysis.confluences:
            conf_table.add_row(confluence.type, format_price(confluence.level),
                               confluence.strength, confluence.description)
        console.print(conf_table)

    if analysis.wyckoff is not None:
        wyckoff = analysis.wyckoff
        if wyckoff.is_wyckoff_pattern:
            phase = wyckoff.current_phase
            events = ", ".join(f"{e.type}@{format_price(e.price)}" for e in phase.events)
            text = (f"{phase.schema_type.title()} phase {phase.phase} "
                    f"(confidence {phase.confidence:.2f})\n{phase.description}\nEvents: {events}")
        elif wyckoff.range_analysis.debug_info:
            text = wyckoff.range_analysis.debug_info['status']
        else:
            text = "No Wyckoff pattern detected"
        console.print(Panel(text, title="Wyckoff", border_style="blue"))

    plans = analysis.buy_plans + analysis.sell_plans
    plan_table = Table(title="Trade Plans", box=box.ROUNDED)
    plan_table.add_column("Plan", style="bold")
    plan_table.add_column("Entry", style="yellow")
    plan_table.add_column("Stop", style="red")
    plan_table.add_column("Target", style="green")
    plan_table.add_column("RR", style="magenta")
    plan_table.add_column("Strength")
    plan_table.add_column("Size", style="cyan")
    for plan in plans:
        size = calculate_position_size(settings.account_size, settings.risk_percentage,
                                       plan.entry, plan.stop, analysis.current_price, plan.target)
        plan_table.add_row(
            plan.title, format_price(plan.entry), format_price(plan.stop), format_price(plan.target),
            f"{plan.risk_reward:.2f}", plan.strength,
            f"{format_currency(size.position_size_usd)} ({size.position_size_units:.6f})"
        )
    if not plans:
        plan_table.add_row("-", "-", "-", "-", "-", "-", "[dim]No plan fits the profile[/]")
    console.print(plan_table)

    if settings.alerts_enabled:
        for alert in check_alerts(build_zone_alerts(analysis), analysis.current_price,
                                  settings.alert_threshold_pct):
            console.print(f"[bold red]Critical zone reached:[/] {alert.zone_name} "
                          f"({format_price(alert.zone_price)})")

    if analysis.debug_info is not None:
        debug = analysis.debug_info
        console.print(f"[dim]debug: {debug.total_zones_found} zones found, {debug.zones_filtered} filtered, "
                      f"search {debug.search_range} candles, {debug.tested_zones} tested / "
                      f"{debug.untested_zones} untested, mean distance {debug.average_zone_distance}%[/]")


def render_result(result: Union[SMCAnalysis, AnalysisError], settings: AppSettings) -> None:
    if isinstance(result, AnalysisError):
        console.print(f"[bold red]Analysis failed:[/] {result.error}")
    else:
        render_analysis(result, settings)


def load_candles(args, settings: AppSettings, downloader: HyperliquidDataDownloader,
                 timeframe: str) -> pd.DataFrame:
    if args.csv:
        return load_csv(args.csv)

    df = downloader.download_data(settings.coin, timeframe)
    if args.save_csv:
        downloader.save_to_csv(df, str(Path(settings.data_dir) / f"{settings.coin.lower()}_{timeframe}.csv"))
    return df


def main():
    """Main function with command line argument parsing"""
    parser = argparse.ArgumentParser(
        description='SMC Analyzer - Smart Money Concepts market analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --timeframe 4h
  python main.py --csv data/btc_1h.csv --timeframe 1h --profile swing --debug
  python main.py --all-timeframes --json report.json
        """
    )

    parser.add_argument('--csv', help='Analyze candles from a CSV file instead of downloading')
    parser.add_argument('--coin', help='Asset to download (default from settings)')
    parser.add_argument('--timeframe', choices=['15m', '30m', '1h', '4h', '1d'],
                        help='Candle timeframe (default from settings)')
    parser.add_argument('--all-timeframes', action='store_true',
                        help=f"Analyze {', '.join(TIMEFRAMES)} and report bias confluence")
    parser.add_argument('--profile', choices=['scalp', 'balanced', 'swing'],
                        help='Trading profile (default from settings)')
    parser.add_argument('--debug', action='store_true', help='Include zone search statistics')
    parser.add_argument('--config', default='config/settings.yaml', help='Settings YAML file')
    parser.add_argument('--json', dest='json_out', help='Write the analysis as JSON to this file')
    parser.add_argument('--save-csv', action='store_true', help='Save downloaded candles to the data dir')
    parser.add_argument('--log-level', help='Logging level (default from settings)')

    args = parser.parse_args()

    settings = load_settings(args.config)
    if args.coin:
        settings.coin = args.coin.upper()
    if args.profile:
        settings.trading_profile = args.profile
    if args.debug:
        settings.debug_mode = True

    setup_logging(args.log_level or settings.log_level)

    if args.csv and args.all_timeframes:
        parser.error("--all-timeframes downloads candles and cannot be combined with --csv")

    profile_config = settings.to_profile_config()
    downloader = HyperliquidDataDownloader()
    timeframes = TIMEFRAMES if args.all_timeframes else [args.timeframe or settings.default_timeframe]

    try:
        candles: Dict[str, pd.DataFrame] = {
            tf: load_candles(args, settings, downloader, tf) for tf in timeframes
        }
    except (FileNotFoundError, ValueError, requests.RequestException) as e:
        console.print(f"[bold red]Error loading candles:[/] {e}")
        sys.exit(1)

    results = analyze_timeframes(candles, profile_config)
    for result in results.values():
        render_result(result, settings)

    if args.all_timeframes:
        for confluence in timeframe_confluence(results):
            console.print(f"[bold]{confluence['type'].upper()}[/] bias on {confluence['count']} timeframes "
                          f"({', '.join(confluence['timeframes'])}) - {confluence['strength']}")

    if args.json_out:
        payload = {tf: r.to_dict() for tf, r in results.items()}
        with open(args.json_out, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, default=str)
        console.print(f"Results saved to: {args.json_out}")

    if all(isinstance(r, AnalysisError) for r in results.values()):
        sys.exit(1)


if __name__ == '__main__':
    main()
