"""
Command-line interface for telgen.

Provides one command per signal:
- traces: parent/child span trees
- metrics: Gauge, Sum or Histogram data points
- logs: log records with configurable body and severity

Every config key is also a --flag; values from --config YAML are overridden by flags.
"""

import argparse
import sys
from collections.abc import Callable
from typing import Any

from . import __version__
from . import config as gen_config
from .attributes.attribute_processor import build_headers
from .attributes.mock_data import MockTemplateEngine
from .config import CommonConfig, LogsConfig, MetricsConfig, TracesConfig, non_default_values
from .exporters import create_exporter
from .exporters.otlp_exporter import grpc_endpoint, http_endpoint
from .generators import log_generator, metric_generator, trace_generator
from .logger import create_logger

COMMANDS: dict[str, tuple[type[CommonConfig], Callable[..., int], str]] = {
    "traces": (TracesConfig, trace_generator.run, "Generate traces"),
    "metrics": (MetricsConfig, metric_generator.run, "Generate metrics"),
    "logs": (LogsConfig, log_generator.run, "Generate logs"),
}


def _bool_flag(value: str) -> bool:
    try:
        return gen_config.parse_bool(value)
    except gen_config.ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _add_setting_flags(parser: argparse.ArgumentParser, cfg_cls: type[CommonConfig]) -> None:
    """One --flag per config setting; unset flags stay out of the overrides."""
    defaults = cfg_cls()
    for f in cfg_cls.settings():
        key = f.metadata["key"]
        kind = f.metadata["kind"]
        default = getattr(defaults, f.name)
        if kind == "duration":
            default = gen_config.format_duration(default)
        help_text = f"{f.metadata['help']} (default: {default!r})"
        kwargs: dict[str, Any] = {"dest": key, "default": argparse.SUPPRESS, "help": help_text}
        if kind == "bool":
            kwargs.update(type=_bool_flag, nargs="?", const=True, metavar="BOOL")
        elif kind in ("kv", "list"):
            kwargs.update(action="append", metavar="VALUE")
        elif kind == "int":
            kwargs.update(type=int)
        elif kind == "float":
            kwargs.update(type=float)
        parser.add_argument(f"--{key}", **kwargs)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="telgen",
        description="Synthetic OpenTelemetry traces, metrics and logs generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 100 traces with 3 child spans each to a local collector over HTTP
  telgen traces --traces 100 --child-spans 3

  # Logs for 30 seconds at 50/s per worker with mock-data attributes
  telgen logs --duration 30s --rate 50 --telemetry-attributes 'user="{{Name}}"'

  # Settings from a YAML file, exported over gRPC
  telgen metrics --config config.yaml --otlp-http=false

  # Export to file instead of OTLP
  telgen traces --traces 10 --output-file traces.jsonl
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Signal to generate")
    for name, (cfg_cls, _, help_text) in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--config",
            type=str,
            default=None,
            help="Path to a YAML config file (flags override its values)",
        )
        sub.add_argument(
            "--vendor",
            type=str,
            default=None,
            help="Namespace for marker attributes (e.g. acme -> acme.mock.data). Overrides VENDOR.",
        )
        sub.add_argument(
            "--output-file",
            type=str,
            default=None,
            help="Output file path (if set, exports JSON lines to file instead of OTLP)",
        )
        sub.add_argument(
            "--console",
            action="store_true",
            help="Print records to stdout instead of exporting over OTLP",
        )
        _add_setting_flags(sub, cfg_cls)
    return parser


def collect_overrides(args: argparse.Namespace, cfg_cls: type[CommonConfig]) -> dict[str, Any]:
    """Dashed-key values for the flags given on the command line."""
    keys = {f.metadata["key"] for f in cfg_cls.settings()}
    return {k: v for k, v in vars(args).items() if k in keys}


def _print_banner(cfg: CommonConfig, args: argparse.Namespace, mock_engine) -> None:
    print(f"Starting {cfg.SIGNAL} generation...")
    if args.output_file:
        print(f"   Output: {args.output_file}")
    elif args.console:
        print("   Output: console")
    elif cfg.use_http:
        print(f"   Endpoint: {http_endpoint(cfg)}")
        print("   Protocol: HTTP")
    else:
        print(f"   Endpoint: {grpc_endpoint(cfg)}")
        print(f"   Protocol: gRPC{' (insecure)' if cfg.insecure else ''}")
    print(f"   Service: {cfg.service_name}")
    print(f"   Workers: {cfg.workers}")
    print(f"   Rate: {cfg.rate:g}/s per worker" if cfg.rate > 0 else "   Rate: unthrottled")
    if mock_engine is not None:
        print(f"   Mock seed: {mock_engine.current_seed}")

    changed = non_default_values(cfg)
    if changed:
        print()
        print("Configuration (non-default values):")
        for key, value in changed:
            print(f"  {key}: {value}")
    print()


def cmd_generate(args: argparse.Namespace) -> int:
    """Run one signal command; return the number of records exported."""
    cfg_cls, run, _ = COMMANDS[args.command]
    cfg = cfg_cls.create(args.config, collect_overrides(args, cfg_cls))
    logger = create_logger(cfg.log_level, cfg.terminal_output)
    cfg.init_attributes()
    cfg.validate()

    mock_engine = MockTemplateEngine(cfg.mock_seed) if cfg.mock_data else None
    headers = build_headers(cfg.headers, mock_engine)
    if cfg.terminal_output:
        _print_banner(cfg, args, mock_engine)

    exporter = create_exporter(cfg, headers, args.output_file, args.console)
    return run(cfg, exporter, mock_engine, logger)


def _set_vendor(vendor: str | None) -> None:
    # CLI flag wins over env; config.attr() reads ATTR_PREFIX at call time.
    if vendor and vendor.strip():
        gen_config.ATTR_PREFIX = vendor.strip().lower()


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _set_vendor(args.vendor)
    try:
        cmd_generate(args)
    except KeyboardInterrupt:
        print("\nGeneration interrupted")
        sys.exit(0)
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
