"""Main CLI entry point for the abx-decode command-line tool.

Provides decoding of ABX files to XML text, format checks and document
statistics for single files or whole directories.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from abx_decoder import __version__
from abx_decoder.api import AbxDecoder
from abx_decoder.shared import (
    AbxConfig,
    ConfigError,
    DiagnosticSeverity,
    configure_logging,
    get_logger,
)

ABX_FILE_SUFFIXES = {".xml", ".abx"}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.decoder_config = AbxConfig.default()
        self.output_format = "xml"
        self.output_suffix = ".xml"
        self.recursive = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds a JSON object with an optional ``preset`` name, an
        optional ``abx`` section in :class:`AbxConfig` dictionary form and CLI
        options. The ``abx`` section is layered on top of the preset, so it
        only needs the fields it changes.

        Raises:
            ConfigError: If the file cannot be read or is invalid
        """
        config = cls()
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file {config_path} must hold a JSON object, "
                f"not {type(data).__name__}"
            )

        if "preset" in data:
            config.decoder_config = AbxConfig.preset(data["preset"])
        if "abx" in data:
            config.decoder_config = AbxConfig.from_dict(
                _layer_sections(config.decoder_config.to_dict(), data["abx"])
            )

        config.output_format = data.get("output_format", config.output_format)
        config.output_suffix = data.get("output_suffix", config.output_suffix)
        config.recursive = data.get("recursive", config.recursive)
        return config


def _layer_sections(base: Dict[str, Any], overrides: Any) -> Any:
    """Apply ``overrides`` on top of ``base``, merging nested sections key by key."""
    if not isinstance(overrides, dict):
        # Left for AbxConfig.from_dict to reject
        return overrides
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


class AbxFileProcessor:
    """Core file processing logic for CLI operations."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.decoder = AbxDecoder(config=config.decoder_config)
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Decode a single file and return a JSON-friendly report."""
        try:
            result = self.decoder.decode_file(file_path)
        except OSError as e:
            self.logger.error(
                f"Could not read {file_path}: {e}",
                extra={"file": str(file_path)},
                exc_info=False,
            )
            return {
                "file": str(file_path),
                "status": "UNREADABLE",
                "success": False,
                "error": str(e),
            }

        report: Dict[str, Any] = {"file": str(file_path), **result.summary()}
        report["text"] = result.text
        report["diagnostics"] = [
            diag.to_dict()
            for diag in result.diagnostics
            if diag.severity in (DiagnosticSeverity.WARNING, DiagnosticSeverity.ERROR)
        ]
        return report

    def find_abx_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Yield candidate files; explicit file paths are always included."""
        if path.is_file():
            yield path
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and candidate.suffix.lower() in ABX_FILE_SUFFIXES:
                    yield candidate
        else:
            # Reported as unreadable by process_single_file
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = False) -> List[Dict[str, Any]]:
        results = []
        for path in paths:
            for file_path in self.find_abx_files(path, recursive):
                results.append(self.process_single_file(file_path))
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="abx-decode",
        description="Decode Android binary XML (ABX) files into XML text",
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Decode command
    decode_parser = subparsers.add_parser("decode", help="Decode ABX files to XML")
    decode_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="ABX files or directories to decode"
    )
    decode_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    destination = decode_parser.add_mutually_exclusive_group()
    destination.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file for a single input (default: stdout)"
    )
    destination.add_argument(
        "--output-dir", "-d",
        type=Path,
        help="Directory receiving one XML file per input"
    )
    decode_parser.add_argument(
        "--format", "-f",
        choices=["xml", "json"],
        default=None,
        help="Output format (default: xml)"
    )
    decode_parser.add_argument(
        "--preset",
        choices=["default", "strict", "lenient"],
        help="Decoder configuration preset"
    )
    decode_parser.add_argument(
        "--indent",
        type=int,
        help="Spaces of indentation per nesting level"
    )
    decode_parser.add_argument(
        "--declaration",
        action="store_true",
        help="Prefix output with an XML declaration"
    )
    decode_parser.add_argument(
        "--escape",
        action="store_true",
        help="Escape reserved XML characters in text and attributes"
    )
    decode_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on mismatched end tags"
    )
    decode_parser.add_argument(
        "--hex",
        action="store_true",
        help="Render INT_HEX and LONG_HEX values as hexadecimal"
    )

    # Check command
    check_parser = subparsers.add_parser("check", help="Check whether files are decodable ABX")
    check_parser.add_argument("paths", nargs="+", type=Path, help="Files or directories to check")
    check_parser.add_argument("--recursive", "-r", action="store_true")
    check_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )

    # Info command
    info_parser = subparsers.add_parser("info", help="Show statistics of decoded documents")
    info_parser.add_argument("paths", nargs="+", type=Path, help="Files or directories to inspect")
    info_parser.add_argument("--recursive", "-r", action="store_true")
    info_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )

    return parser


def _load_config(args: argparse.Namespace) -> CLIConfig:
    if not args.config:
        return CLIConfig()

    config = CLIConfig.from_file(args.config)
    # Command-line verbosity flags win over the file's logging level
    if not (args.verbose or args.quiet):
        configure_logging(config.decoder_config.logging_level)
    return config


def _apply_decode_overrides(config: CLIConfig, args: argparse.Namespace) -> None:
    if args.preset:
        config.decoder_config = AbxConfig.preset(args.preset)

    overrides: Dict[str, Any] = {}
    if args.indent is not None:
        overrides["serializer__indent"] = args.indent
    if args.declaration:
        overrides["serializer__include_declaration"] = True
    if args.escape:
        overrides["serializer__escape_special_chars"] = True
    if args.strict:
        overrides["decoder__strict_end_tags"] = True
    if args.hex:
        overrides["decoder__render_hex_types"] = True
    if overrides:
        config.decoder_config = config.decoder_config.override(**overrides)

    if args.format:
        config.output_format = args.format
    if args.recursive:
        config.recursive = True


def _print_failures(results: List[Dict[str, Any]]) -> None:
    for result in results:
        if result.get("success"):
            continue
        reason = result.get("error") or result.get("status", "FAILED")
        print(f"{result['file']}: {reason}", file=sys.stderr)


def cmd_decode(args: argparse.Namespace) -> int:
    """Handle decode command."""
    config = _load_config(args)
    _apply_decode_overrides(config, args)

    processor = AbxFileProcessor(config)
    results = processor.batch_process(args.paths, config.recursive)
    if not results:
        print("No input files found", file=sys.stderr)
        return 1

    if args.output and len(results) > 1:
        print("--output accepts a single input; use --output-dir", file=sys.stderr)
        return 1

    _print_failures(results)
    successful = [r for r in results if r.get("success")]
    collisions = 0

    if config.output_format == "json":
        output = json.dumps(results, indent=2)
        if args.output:
            args.output.write_text(output, encoding="utf-8")
        else:
            print(output)
    elif args.output_dir:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        written: Dict[Path, Path] = {}
        for result in successful:
            source = Path(result["file"])
            target = args.output_dir / f"{source.stem}{config.output_suffix}"
            if target in written:
                # Inputs from different directories can share a stem
                print(
                    f"{source}: output {target} already written from {written[target]}",
                    file=sys.stderr,
                )
                collisions += 1
                continue
            target.write_text(result["text"], encoding="utf-8")
            written[target] = source
            print(f"Decoded: {source} -> {target}", file=sys.stderr)
    elif args.output:
        for result in successful:
            args.output.write_text(result["text"], encoding="utf-8")
    else:
        for result in successful:
            print(result["text"])

    if collisions or len(successful) != len(results):
        return 1
    return 0


def format_check_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format check results for output."""
    rows = [
        {
            "file": r["file"],
            "status": r.get("status"),
            "error_kind": r.get("error_kind"),
            "error": r.get("error"),
        }
        for r in results
    ]
    if format_type == "json":
        return json.dumps(rows, indent=2)

    lines = []
    decodable = sum(1 for r in rows if r["status"] == "SUCCESS")
    lines.append(f"Checked {len(rows)} files, {decodable} decodable")
    lines.append("-" * 50)
    for row in rows:
        status = "✓" if row["status"] == "SUCCESS" else "✗"
        lines.append(f"{status} {row['file']} [{row['status']}]")
        if row["error"]:
            lines.append(f"   Error: {row['error']}")
    return "\n".join(lines)


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    config = _load_config(args)
    processor = AbxFileProcessor(config)
    results = processor.batch_process(args.paths, args.recursive)

    print(format_check_results(results, args.format))
    if not results:
        return 1
    return 0 if all(r.get("success") for r in results) else 1


_INFO_FIELDS = [
    "status",
    "root_tag",
    "element_count",
    "attribute_count",
    "max_depth",
    "interned_string_count",
    "bytes_processed",
    "tokens_decoded",
    "warning_count",
    "processing_time_ms",
]


def format_info_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format document statistics for output."""
    rows = [
        {"file": r["file"], **{key: r.get(key) for key in _INFO_FIELDS if key in r}}
        for r in results
    ]
    if format_type == "json":
        return json.dumps(rows, indent=2)

    lines = []
    for row in rows:
        lines.append(row["file"])
        for key in _INFO_FIELDS:
            if key not in row:
                continue
            value = row[key]
            if isinstance(value, float):
                value = f"{value:.2f}"
            lines.append(f"   {key}: {value}")
    return "\n".join(lines)


def cmd_info(args: argparse.Namespace) -> int:
    """Handle info command."""
    config = _load_config(args)
    processor = AbxFileProcessor(config)
    results = processor.batch_process(args.paths, args.recursive)

    print(format_info_results(results, args.format))
    if not results:
        return 1
    return 0 if all(r.get("success") for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging("WARNING")

    handlers = {
        "decode": cmd_decode,
        "check": cmd_check,
        "info": cmd_info,
    }

    try:
        return handlers[args.command](args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
