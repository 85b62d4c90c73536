"""
funnelsort - Main Application
=============================

Command-line entry point: sorts a directory through the classification
funnel, probes the inference engine, or pulls a model.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import yaml

from funnelsort.config import Config
from funnelsort.inference import OllamaClient
from funnelsort.monitoring import EventEmitter, PROCESSING_START, PROCESSING_COMPLETE, FILE_DUPLICATE_DETECTED
from funnelsort.orchestrator import FunnelOrchestrator, RunReport
from funnelsort.utils.exceptions import FunnelSortError, InferenceError
from funnelsort.utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="funnelsort",
        description="funnelsort - Sort a folder through a three-stage classification funnel"
    )
    parser.add_argument(
        'directory',
        nargs='?',
        type=Path,
        help='Directory to sort'
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help='Path to a YAML configuration file'
    )
    parser.add_argument(
        '--no-ai',
        action='store_true',
        help='Skip the inference engine (Stage 3 and folder summaries)'
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Report whether the inference engine is reachable and list its models'
    )
    parser.add_argument(
        '--pull',
        metavar='MODEL',
        help='Download a model into the inference engine'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Write console logs as JSON'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    return parser


def _print_event(event: str, payload: dict) -> None:
    if event == PROCESSING_START:
        print(f"\n📂 Found {payload['total']} files\n")
    elif event == FILE_DUPLICATE_DETECTED:
        print(f"  ♻ {payload['filename']} duplicates {payload['originalPath']}")
    elif event == PROCESSING_COMPLETE:
        print(f"\n✓ Moved {payload['totalMoved']} files into {payload['totalFolders']} folders "
              f"in {payload['processingTime']}s")


def print_report(report: RunReport) -> None:
    stats = report.stats
    print("\n📊 Funnel Breakdown:\n")
    print(f"  Stage 1 (Regex Guard):      {stats['stage1']}")
    print(f"  Stage 2 (Metadata Analyst): {stats['stage2']}")
    print(f"  Stage 3 (AI Arbiter):       {stats['stage3']}")
    print(f"  Fallback:                   {stats['fallback']}")
    print(f"  Total processed:            {stats['total']}")
    print(f"  Duplicates deleted:         {stats['duplicates']}")
    if report.failures:
        print(f"\n  ✗ Failed ({len(report.failures)}):")
        for filename, error in sorted(report.failures.items()):
            print(f"    {filename}: {error}")


async def check_engine(config: Config) -> bool:
    """Print whether the inference engine is reachable and which models it has."""
    client = OllamaClient(host=config.inference.host, timeout=config.inference.request_timeout)
    if not await client.is_running():
        print(f"✗ Inference engine not reachable at {config.inference.host}")
        return False

    models = await client.list_models()
    print(f"✓ Inference engine running at {config.inference.host}")
    for name in (config.inference.text_model, config.inference.vision_model):
        present = any(m == name or m.startswith(f"{name}:") for m in models)
        print(f"  {'✓' if present else '✗'} {name}")
    return True


async def pull(config: Config, model: str) -> bool:
    """Download a model, printing percentage progress."""
    client = OllamaClient(host=config.inference.host, timeout=config.inference.request_timeout)
    last = {"percent": None}

    def on_progress(progress: dict) -> None:
        percent = progress.get("percent")
        if percent is not None and percent != last["percent"]:
            last["percent"] = percent
            print(f"\r  {progress.get('status') or 'downloading'}: {percent}%", end="", flush=True)

    try:
        await client.pull_model(model, progress_callback=on_progress)
    except InferenceError as e:
        print(f"\n✗ Pull failed: {e}")
        return False
    print(f"\n✓ Pulled {model}")
    return True


async def sort_directory(config: Config, directory: Path) -> RunReport:
    """Run the funnel over one directory, releasing the model afterwards."""
    events = EventEmitter()
    events.on_any(_print_event)
    orchestrator = FunnelOrchestrator.from_config(config, events=events)
    try:
        return await orchestrator.process_directory(directory)
    finally:
        await orchestrator.shutdown()


def main(argv: Optional[list] = None) -> int:
    """Main entry point with CLI support."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config)
    except (yaml.YAMLError, FunnelSortError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    if args.verbose:
        config.logging.level = "DEBUG"
    if args.json_logs:
        config.logging.json_format = True
    if args.no_ai:
        config.inference.enabled = False
    setup_logging(config.logging)

    if args.check:
        return 0 if asyncio.run(check_engine(config)) else 1

    if args.pull:
        return 0 if asyncio.run(pull(config, args.pull)) else 1

    if args.directory is None:
        parser.print_help()
        return 2

    try:
        report = asyncio.run(sort_directory(config, args.directory))
    except FunnelSortError as e:
        logger.error(str(e))
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
