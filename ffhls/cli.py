# ffhls/cli.py
"""
Command-line interface for FFHLS
"""

import argparse
import asyncio
import shutil
import sys
from pathlib import Path

from ffhls import __version__
from ffhls.core.orchestrator import ConversionOrchestrator, ConversionRequest
from ffhls.config.settings import Settings
from ffhls.monitoring.logger import setup_logging
from ffhls.monitoring.progress_tracker import ProgressTracker
from ffhls.utils.exceptions import FFHLSError


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(
        prog="ffhls",
        description="FFHLS - Convert a video into a multi-quality HLS stream",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ffhls movie.mp4                           # Default qualities (120-720)
  ffhls movie.mp4 -r 360 720 1080           # Pick qualities
  ffhls movie.mp4 --id movie-42             # Fixed output folder name
  ffhls movie.mp4 --catalog ladder.yaml     # Custom quality catalog
  ffhls --list-qualities                    # Show the catalog
        """
    )

    parser.add_argument(
        "source",
        nargs="?",
        help="Video file name inside the input folder"
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )

    parser.add_argument(
        "-r", "--qualities",
        nargs="+",
        metavar="NAME",
        help="Quality names to produce (default: 120 240 360 480 720)"
    )

    parser.add_argument(
        "--id",
        dest="run_id",
        help="Output folder name for this run (default: random UUID)"
    )

    parser.add_argument(
        "-i", "--input-dir",
        type=Path,
        help="Folder containing the source video"
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Base output folder"
    )

    parser.add_argument(
        "--catalog",
        type=Path,
        help="YAML file replacing the built-in quality catalog"
    )

    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete the source video after a successful conversion"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Custom log file path"
    )

    parser.add_argument(
        "--webhook",
        type=str,
        help="Webhook URL for notifications"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ffhls {__version__}"
    )

    parser.add_argument(
        "--list-qualities",
        action="store_true",
        help="List available qualities and exit"
    )

    parser.add_argument(
        "--check-deps",
        action="store_true",
        help="Check system dependencies and exit"
    )

    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI arguments on top of file settings"""
    if args.input_dir:
        settings.input_folder = args.input_dir
    if args.output:
        settings.output_path = args.output
    if args.catalog:
        settings.catalog_file = args.catalog
    if args.cleanup:
        settings.input_cleanup = True
    if args.webhook:
        settings.webhook_url = args.webhook
    settings.validate()
    return settings


async def async_main(argv=None) -> int:
    """Main async CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = "INFO"
    if args.quiet:
        log_level = "ERROR"
    elif args.verbose:
        log_level = "DEBUG"

    try:
        settings = apply_overrides(Settings.load(config_path=args.config), args)
    except FFHLSError as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(
        level=log_level,
        log_file=args.log_file,
        log_dir=settings.log_dir
    )
    tracker = ProgressTracker()

    if args.check_deps:
        missing = 0
        for tool in (settings.ffmpeg_path, settings.ffprobe_path):
            found = shutil.which(tool) is not None
            missing += not found
            print(f"{tool}: {'✓ Found' if found else '✗ Not found'}")
        return 0 if missing == 0 else 1

    if args.list_qualities:
        try:
            catalog = settings.catalog()
        except FFHLSError as e:
            tracker.print_error(str(e))
            return 1
        tracker.print_qualities(catalog, settings.default_qualities)
        return 0

    if not args.source:
        logger.error("No source video specified. Use --help for usage information.")
        return 1

    orchestrator = ConversionOrchestrator(settings)

    try:
        with tracker.quality_progress() as progress:
            result = await orchestrator.convert(ConversionRequest(
                source_file_name=args.source,
                progress_callback=progress,
                qualities=args.qualities,
                run_id=args.run_id
            ))
    except FFHLSError as e:
        tracker.print_error(str(e))
        logger.debug("Conversion failed", exc_info=True)
        return 1

    if not args.quiet:
        tracker.print_summary({
            "Run": result.run_id,
            "Output": result.output_dir,
            "Master playlist": result.master_manifest.name,
            "Qualities": ", ".join(result.qualities),
            "Elapsed": f"{result.duration:.1f}s",
            "Source removed": "yes" if result.source_removed else "no",
        })
        tracker.print_success(f"HLS stream written to {result.master_manifest}")

    return 0


def main():
    """Synchronous entry point for console scripts"""
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
