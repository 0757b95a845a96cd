"""Command line interface for kmquant."""
import argparse
import logging
import sys
from pathlib import Path

from kmquant.pipeline import QuantizePipeline
from kmquant.types import QuantizationError, QuantizeConfig


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='kmquant',
        description='Reduce an image to N colors with K-means clustering',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kmquant -c 8 -i photo.jpg
  kmquant -c 16 -i photo.jpg -o photo_16.png --seed 42
  kmquant -c 4 -i large.jpg --workers -1 -v
        """,
    )

    parser.add_argument(
        '-c', '--clusters',
        type=int,
        required=True,
        help='Number of clusters (colors)'
    )

    parser.add_argument(
        '-i', '--input',
        type=str,
        required=True,
        help='Input image path'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output image path (default: <input>_in_<seconds>s_<clusters>cl.jpg)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for initial centroids (default: random)'
    )

    parser.add_argument(
        '--max-iter',
        type=int,
        default=300,
        help='Maximum clustering iterations (default: 300)'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=1,
        help='Worker processes for pixel assignment, -1 for all CPUs (default: 1)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase log output (-v info, -vv debug)'
    )

    return parser


def configure_logging(verbosity: int) -> None:
    """Set the root log level from the -v count."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def main(args=None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    input_path = Path(parsed_args.input)
    print(f"Using file: {parsed_args.input}")
    print(f"{parsed_args.clusters} clusters")

    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    try:
        config = QuantizeConfig(
            n_clusters=parsed_args.clusters,
            max_iter=parsed_args.max_iter,
            random_state=parsed_args.seed,
            parallel_workers=parsed_args.workers,
        )
    except QuantizationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        pipeline = QuantizePipeline(config)
        output_path = pipeline.process(input_path, parsed_args.output)
    except (QuantizationError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Elapsed time: {pipeline.elapsed!r} seconds")
    if not pipeline.result.converged:
        print(f"Warning: stopped after {pipeline.result.iterations} iterations without converging")
    print(f"Saved into {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
