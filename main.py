#!/usr/bin/env python3
"""
StegoText - hide text messages in images using LSB steganography
"""

import argparse
import logging
import os
import sys

from stegotext.cli import CLIInterface
from stegotext.config import ConfigError, get_config, reload_config
from stegotext.core import StegoEngine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='stegotext',
        description='StegoText - hide text in images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Hide a message in a photo (writes photo_stego.png)
  %(prog)s embed photo.jpg --text "meet at noon"

  # Hide the contents of a text file, choosing the output name
  %(prog)s embed photo.png out.png --text-file note.txt

  # Use the first frame of a video as the cover
  %(prog)s embed clip.mp4 frame.png --text "hello"

  # Read messages back
  %(prog)s extract out.png frame.png

  # How much text fits?
  %(prog)s capacity photo.png --text "meet at noon"
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--config', help='Path to a YAML configuration file')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    embed_parser = subparsers.add_parser('embed', help='Hide text in an image')
    embed_parser.add_argument('cover', help='Cover image or video')
    embed_parser.add_argument('output_image', nargs='?',
                              help='Output PNG (default: <cover>_stego.png)')
    source = embed_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--text', '-t', help='Text to hide')
    source.add_argument('--text-file', '-f', help='UTF-8 file whose contents to hide')

    extract_parser = subparsers.add_parser('extract', help='Read hidden text')
    extract_parser.add_argument('stego_images', nargs='+', help='Stego images or videos')
    extract_parser.add_argument('--output', '-o',
                                help='Write the message to this file (single image only)')

    capacity_parser = subparsers.add_parser('capacity', help='Show how much text fits')
    capacity_parser.add_argument('image', help='Image or video to inspect')
    capacity_parser.add_argument('--text', '-t', help='Check whether this text fits')

    return parser


def setup_logging(config: dict, verbose: bool = False):
    level_name = 'DEBUG' if verbose else str(config.get('logging', {}).get('level', 'WARNING'))
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _read_text(args) -> str:
    if args.text is not None:
        return args.text
    with open(args.text_file, 'r', encoding='utf-8') as f:
        return f.read()


def run_embed(args, cli: CLIInterface, engine: StegoEngine) -> int:
    cli.print_header("Embedding text into image...")
    text = _read_text(args)
    cli.print_info(f"Cover: {args.cover}")

    output_path = engine.embed_text(args.cover, text, args.output_image)
    if not output_path:
        cli.print_error(engine.last_error or "Failed to embed text")
        return 1

    cli.print_success(f"Text embedded successfully: {output_path}")
    cli.print_info(f"Output image size: {cli.format_size(os.path.getsize(output_path))}")
    return 0


def run_extract(args, cli: CLIInterface, engine: StegoEngine, config: dict) -> int:
    cli.print_header("Extracting text from image...")
    if args.output and len(args.stego_images) > 1:
        cli.print_error("--output can only be used with a single image")
        return 1

    show_progress = config.get('defaults', {}).get('show_progress', True) and len(args.stego_images) > 1
    results = []
    for path in cli.progress(args.stego_images, len(args.stego_images), 'Decoding', show_progress):
        results.append((path, engine.extract_text(path), engine.last_error))

    status = 0
    for path, message, error in results:
        if message is None:
            cli.print_error(f"{path}: {error}")
            status = 1
            continue
        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(message)
            cli.print_success(f"Message written to {args.output}")
        else:
            cli.print_success(f"{path}:")
            cli.print_message(message)
    return status


def run_capacity(args, cli: CLIInterface, engine: StegoEngine) -> int:
    cli.print_header(f"Capacity of {args.image}")
    info = engine.get_capacity_info(args.image)
    fit = engine.check_text_fits(args.text, args.image) if args.text is not None else None
    cli.print_capacity(info, fit)
    if fit is not None and not fit['fits']:
        return 1
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = CLIInterface()
    try:
        config = reload_config(args.config) if args.config else get_config()
    except ConfigError as e:
        cli.print_error(str(e))
        return 1

    setup_logging(config, args.verbose)
    engine = StegoEngine(config)

    try:
        if args.command == 'embed':
            return run_embed(args, cli, engine)
        elif args.command == 'extract':
            return run_extract(args, cli, engine, config)
        elif args.command == 'capacity':
            return run_capacity(args, cli, engine)
    except KeyboardInterrupt:
        print("\n")
        cli.print_warning("Operation cancelled by user")
        return 1
    except Exception as e:
        cli.print_error(f"Error: {e}")
        return 1
    return 1


if __name__ == '__main__':
    sys.exit(main())
