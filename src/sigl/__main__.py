#!/usr/bin/env python3
"""
CLI for the SIGL scene parser.

Usage:
    python -m sigl check FILE.sigl
    python -m sigl parse FILE.sigl [--output OUT.json] [--strict-extensions]
    python -m sigl vocab [--extension NAME]

Examples:
    # Report diagnostics for a scene
    python -m sigl check examples/classroom.sigl

    # Write the scene graph as JSON
    python -m sigl parse examples/classroom.sigl -o classroom.json

    # List the keywords the hospital extension adds
    python -m sigl vocab --extension hospital
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml


def _read_source(path_arg):
    source_path = Path(path_arg)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return source_path, None
    return source_path, source_path.read_text(encoding="utf-8")


def cmd_check(args):
    """Parse a SIGL file and print its diagnostics."""
    from . import Parser, FatalParseError

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    try:
        result = Parser().parse(source, filename=str(source_path))
    except FatalParseError as e:
        print(f"Error: {e.diagnostic.message}", file=sys.stderr)
        return 1

    if result.diagnostics.diagnostics:
        print(result.diagnostics.format_all())

    if not result.success:
        return 1

    print(f"OK: {source_path.name} - {len(result.scene.entities)} entit(y/ies), no errors")
    return 0


def cmd_parse(args):
    """Parse a SIGL file and emit the scene as JSON."""
    from . import Parser, ParserOptions, FatalParseError

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    options = ParserOptions(strict_extensions=args.strict_extensions)
    try:
        result = Parser(options=options).parse(source, filename=str(source_path))
    except FatalParseError as e:
        print(f"Error: {e.diagnostic.message}", file=sys.stderr)
        return 1

    if result.diagnostics.diagnostics:
        print(result.diagnostics.format_all(), file=sys.stderr)

    payload = {
        "success": result.success,
        "scene": result.scene.to_json(),
        **result.diagnostics.to_json(),
    }
    text = json.dumps(payload, indent=2)

    if args.output:
        output_path = Path(args.output)
        if output_path.exists() and not args.force:
            print(f"Error: {output_path} exists (use --force to overwrite)", file=sys.stderr)
            return 1
        output_path.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {output_path}")
    else:
        print(text)

    return 0 if result.success else 1


def cmd_vocab(args):
    """List DRAW keywords and environments."""
    from .vocabulary import load_vocabulary

    try:
        vocabulary = load_vocabulary()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.extension and args.extension.lower() not in vocabulary.extension_names():
        print(f"Error: unknown extension '{args.extension}'", file=sys.stderr)
        return 1

    entity_types = vocabulary.entity_types(args.extension)
    print(f"Entities ({len(entity_types)}):")
    for entry in entity_types:
        source = entry.extension or "core"
        print(f"  {entry.keyword:<22} {entry.category}/{entry.subtype}  [{source}]")

    environments = vocabulary.environments(args.extension)
    print(f"Environments ({len(environments)}):")
    for env in environments:
        color = env.background.get("color", "")
        print(f"  {env.name:<22} {color}  [{env.extension or 'core'}]")

    if not args.extension:
        print(f"Extensions: {', '.join(sorted(vocabulary.extension_names()))}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m sigl',
        description='SIGL scene description parser',
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # check command
    check_parser = subparsers.add_parser('check', help='Check SIGL file for errors')
    check_parser.add_argument('file', help='SIGL source file')

    # parse command
    parse_parser = subparsers.add_parser('parse', help='Parse SIGL file into scene JSON')
    parse_parser.add_argument('file', help='SIGL source file')
    parse_parser.add_argument('-o', '--output', metavar='FILE',
                              help='Write JSON to FILE instead of stdout')
    parse_parser.add_argument('-f', '--force', action='store_true',
                              help='Overwrite existing output')
    parse_parser.add_argument('--strict-extensions', action='store_true',
                              help='Only accept extension keywords after LOAD EXTENSION')

    # vocab command
    vocab_parser = subparsers.add_parser('vocab', help='List known keywords and environments')
    vocab_parser.add_argument('--extension', metavar='NAME',
                              help='Only list one extension catalog')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.action == 'check':
        return cmd_check(args)
    elif args.action == 'parse':
        return cmd_parse(args)
    elif args.action == 'vocab':
        return cmd_vocab(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
