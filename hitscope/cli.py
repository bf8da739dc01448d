"""
HitScope - Commercial Success Analysis CLI

This module provides the command-line interface for HitScope.
It can be invoked as 'hitscope' from anywhere after installation.

Example usage:
    # Single file analysis
    hitscope --genre pop path/to/track.wav
    hitscope --output result.json --release-date 2025-06-01 path/to/track.wav

    # Batch processing
    hitscope --batch path/to/directory/
    hitscope --batch --recursive --output-file report.txt path/to/directory/
"""

import argparse
import copy
import sys
import traceback
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional

from hitscope import __version__
from hitscope.core.engine import SuccessAnalysisEngine, create_analysis_engine
from hitscope.core.models import SuccessScoreResult
from hitscope.core.result_writer import create_result_writer
from hitscope.utils.config import load_config
from hitscope.utils.errors import HitScopeError
from hitscope.utils.logging import setup_logging


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def collect_audio_files(
    inputs: Iterable[Path],
    supported_formats: Iterable[str],
    recursive: bool = False,
) -> List[Path]:
    """Collect supported audio files from files and directories, sorted."""
    suffixes = {s.lower() for s in supported_formats}
    files = set()
    for path in inputs:
        path = Path(path)
        if path.is_file():
            if path.suffix.lower() in suffixes:
                files.add(path)
            else:
                print(f"Skipping non-audio file: {path}")
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            files.update(
                p for p in path.glob(pattern)
                if p.is_file() and p.suffix.lower() in suffixes
            )
        else:
            print(f"Path not found: {path}")
    return sorted(files)


def print_result(file_path: Path, result: SuccessScoreResult) -> None:
    """Print a success assessment to the console."""
    print("\n" + "=" * 60)
    print("HITSCOPE SUCCESS ANALYSIS")
    print("=" * 60)
    print(f"File: {file_path.name}")
    print("-" * 60)
    print(result.get_summary())
    print("-" * 60)

    b = result.breakdown
    print("\nBreakdown:")
    print(f"  Audio Features:   {b.audio_features:>3}")
    print(f"  Market Trends:    {b.market_trends:>3}  ({result.market_source})")
    print(f"  Genre Alignment:  {b.genre_alignment:>3}")
    print(f"  Seasonal Factors: {b.seasonal_factors:>3}")
    print(f"\nMarket Potential: {result.market_potential}/100")
    print(f"Social Score: {result.social_score}/100")
    print(f"Feature Fit: {result.feature_fit}/100")

    risk = result.risk_assessment
    print(f"\nRisk: {risk.overall_risk.value} ({risk.risk_score}/100)")
    for factor in risk.risk_factors:
        print(f"  - {factor}")
    for strategy in risk.mitigation_strategies:
        print(f"  * {strategy}")

    if result.recommendations:
        print("\nRecommendations:")
        for rec in result.recommendations:
            print(f"  [{rec.priority.value.upper():<6}] {rec.title} (impact {rec.impact})")
            print(f"           {rec.description}")


def analyze_single_file(
    engine: SuccessAnalysisEngine,
    audio_file: Path,
    args: argparse.Namespace,
) -> int:
    """
    Analyze a single audio file.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not audio_file.exists():
        print(f"Error: Audio file not found: {audio_file}")
        return 1

    print(f"Analyzing: {audio_file}")
    try:
        result = engine.analyze_file(
            audio_file,
            genre=args.genre,
            release_date=args.release_date,
            is_released=args.released,
        )
    except (OSError, HitScopeError) as e:
        print(f"Error during analysis: {e}")
        if args.verbose:
            traceback.print_exc()
        return 1

    print_result(audio_file, result)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, 'w') as f:
            f.write(result.to_json(indent=2))
        print(f"\nJSON results saved to: {args.output}")

    if args.output_file:
        create_result_writer("text").write({audio_file: result}, args.output_file)
        print(f"Text results saved to: {args.output_file}")

    return 0


def analyze_batch(
    engine: SuccessAnalysisEngine,
    inputs: List[Path],
    config: dict,
    args: argparse.Namespace,
) -> int:
    """
    Analyze multiple audio files in batch mode.

    Returns:
        Exit code (0 when every file was scored, 1 otherwise)
    """
    files = collect_audio_files(
        inputs, config["audio"]["supported_formats"], recursive=args.recursive
    )
    if not files:
        print("No audio files found.")
        return 1

    print(f"Found {len(files)} audio file(s)")
    results, errors = engine.analyze_batch(
        files,
        genre=args.genre,
        release_date=args.release_date,
        is_released=args.released,
    )

    print("\n" + "=" * 60)
    print("BATCH PROCESSING COMPLETE")
    print("=" * 60)
    print(f"Total Files: {len(files)}")
    print(f"Successful: {len(results)}")
    print(f"Failed: {len(errors)}")

    for path, result in results.items():
        print(f"  {path.name}: {result.get_summary()}")

    if errors:
        print("\nFailed Files:")
        for path, error in errors.items():
            print(f"  {path.name}: {error}")

    # Text report is written by default
    if args.output_file or not args.output:
        txt_path = args.output_file or Path(
            f"hitscope_results_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
        )
        create_result_writer("text").write(results, txt_path, errors)
        print(f"\nText results saved to: {txt_path}")

    if args.output:
        create_result_writer("json").write(results, args.output, errors)
        print(f"JSON results saved to: {args.output}")

    return 0 if not errors else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hitscope",
        description="Estimate the commercial success potential of audio tracks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single file:
    hitscope track.wav
    hitscope --genre pop --release-date 2025-06-01 track.wav
    hitscope --released --output result.json track.wav

  Batch processing:
    hitscope --batch tracks/
    hitscope --batch --recursive --output-file report.txt tracks/
        """
    )

    parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Audio file(s) or directory to analyze"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"hitscope {__version__}"
    )
    parser.add_argument(
        "--genre",
        "-g",
        default=None,
        help="Genre of the track (e.g. pop, hip-hop, rock, electronic, r&b, country, folk)"
    )
    parser.add_argument(
        "--release-date",
        type=parse_date,
        default=None,
        help="Planned or actual release date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--released",
        action="store_true",
        help="Track is already released: report performance insights instead of production advice"
    )
    parser.add_argument(
        "--market-file",
        type=Path,
        default=None,
        help="YAML or JSON market trends snapshot to score against"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save JSON results"
    )
    parser.add_argument(
        "--output-file",
        "-o",
        type=Path,
        default=None,
        help="Path to save text results file (.txt)"
    )
    parser.add_argument(
        "--batch",
        "-b",
        action="store_true",
        help="Enable batch processing mode for multiple files or directories"
    )
    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Search directories recursively (only with --batch)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the hitscope command."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
    except HitScopeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.market_file:
        config = copy.deepcopy(config)
        config["market"]["provider"] = "file"
        config["market"]["snapshot_path"] = str(args.market_file)

    logging_config = config.get("logging", {})
    setup_logging(
        level="DEBUG" if args.verbose else logging_config.get("level", "INFO"),
        log_format=logging_config.get("format", "text"),
        log_file=logging_config.get("file"),
        colored=True,
        console_enabled=True
    )

    is_batch = args.batch or len(args.inputs) > 1 or args.inputs[0].is_dir()

    with create_analysis_engine(config) as engine:
        if is_batch:
            exit_code = analyze_batch(engine, args.inputs, config, args)
        else:
            exit_code = analyze_single_file(engine, args.inputs[0], args)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
