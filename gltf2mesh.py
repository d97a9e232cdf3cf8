#!/usr/bin/env python3
"""
gltf2mesh - Command Line Version
Flattens glTF 2.0 scenes into a single triangle mesh (.gltf + .bin)
"""

import argparse
import logging
import sys
from pathlib import Path

from meshbridge import config
from meshbridge.converter import MeshBridgeConverter
from meshbridge.logging_config import setup_logging
from meshbridge.readers import SUPPORTED_EXTENSIONS, is_supported_format


def build_parser():
    parser = argparse.ArgumentParser(
        prog='gltf2mesh',
        description='Flatten glTF 2.0 scenes into a single render-ready triangle mesh',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert one scene into ./output/scene_mesh.gltf + scene_mesh.bin
  python gltf2mesh.py scene.gltf --output-dir ./output

  # Center the model and scale it into a unit box
  python gltf2mesh.py scene.gltf --output-dir ./output --normalize

  # Convert a folder of scenes with 8 worker threads
  python gltf2mesh.py scenes/*.gltf --output-dir ./output --workers 8

  # Print document statistics and keep a log file
  python gltf2mesh.py scene.gltf --stats --log-file convert.log

Supported input formats:
  .gltf    - glTF 2.0 manifest with external .bin payloads
        """
    )

    parser.add_argument('input', nargs='+', help='Input glTF manifest(s)')
    parser.add_argument('--output-dir', type=str,
                        help='Output directory (default: ~/.meshbridge/output)')
    parser.add_argument('--workers', type=int, default=config.DEFAULT_WORKERS,
                        help=f'Worker threads for several inputs (default: {config.DEFAULT_WORKERS})')
    parser.add_argument('--center', action='store_true',
                        help='Move the bounding-box center to the origin')
    parser.add_argument('--normalize', action='store_true',
                        help='Center and scale so the largest bounding-box edge is 1')
    parser.add_argument('--stats', action='store_true',
                        help='Log statistics of each parsed document')
    parser.add_argument('--log-file', type=str,
                        help='Also write the log to this file')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file,
                  batch=len(args.input) > 1)

    input_paths = [Path(p) for p in args.input]
    for input_path in input_paths:
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}", file=sys.stderr)
            return 1
        if not is_supported_format(input_path):
            print(f"Error: Unsupported file format: {input_path.suffix.lower()}", file=sys.stderr)
            print(f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}", file=sys.stderr)
            return 1

    if args.workers < 1:
        print("Error: --workers must be at least 1", file=sys.stderr)
        return 1

    output_dir = args.output_dir or config.get_resource_path(config.APP_NAME, "output")

    if len(input_paths) == 1:
        converter = MeshBridgeConverter()
        result = converter.convert(
            str(input_paths[0]),
            output_dir,
            center=args.center,
            normalize=args.normalize,
            stats=args.stats,
        )

        if result.get('success'):
            print("\n" + "="*60)
            print("✓ Conversion completed successfully!")
            print(f"✓ glTF file: {result['gltf_file']}")
            print(f"✓ Binary file: {result['bin_file']}")
            print(f"  {result['message']}")
            print("="*60)
            return 0

        print(f"\n✗ {result.get('message', 'Conversion failed')}", file=sys.stderr)
        return 1

    converter = MeshBridgeConverter(progress_callback=print)
    batch = converter.convert_batch(
        [str(p) for p in input_paths],
        output_dir,
        workers=args.workers,
        center=args.center,
        normalize=args.normalize,
    )

    print("\n" + "="*60)
    print(f"Completed {batch.completed}/{batch.total} files")
    for path, message in batch.errors:
        print(f"✗ {path}: {message}", file=sys.stderr)
    print("="*60)
    return 0 if batch.success else 1


if __name__ == "__main__":
    sys.exit(main())
