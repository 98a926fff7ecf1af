"""Command line interface for MeshWarp grids."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from meshwarp_playground.editor import build_state, sanitize_config
from meshwarp_playground.export import DEFAULT_JSON_NAME, write_state
from meshwarp_playground.geometry import parse_rules
from meshwarp_playground.logs import configure_logging
from meshwarp_playground.model import GridConfig
from meshwarp_playground.settings import EditorSettings, load_settings

logger = logging.getLogger(__name__)


def _grid_config(args: argparse.Namespace, settings: EditorSettings) -> GridConfig:
    config = GridConfig(
        base_cols=settings.base_cols if args.cols is None else args.cols,
        base_rows=settings.base_rows if args.rows is None else args.rows,
        rule_string=settings.rule_string if args.rules is None else args.rules,
    )
    if config.base_cols < 1 or config.base_rows < 1:
        raise ValueError("--cols and --rows must be at least 1")
    return sanitize_config(config)


def _cmd_parse_rules(args: argparse.Namespace, settings: EditorSettings) -> None:
    config = _grid_config(args, settings)
    rules = parse_rules(config.rule_string, config.base_cols, config.base_rows)
    print(json.dumps(rules.asdict(), indent=2, sort_keys=True))


def _cmd_generate(args: argparse.Namespace, settings: EditorSettings) -> None:
    config = _grid_config(args, settings)
    state = build_state(config)
    out_path = write_state(state, Path(args.output or DEFAULT_JSON_NAME))
    print(
        f"Wrote {out_path} | grid={config.base_cols}x{config.base_rows} "
        f"rules='{config.rule_string}' vertices={len(state.vertices)} cells={len(state.cells)}"
    )


def _cmd_list_palette(_args: argparse.Namespace, settings: EditorSettings) -> None:
    print("Palette:")
    for color in settings.palette:
        marker = " (active)" if color == settings.active_color else ""
        print(f"  - {color}{marker}")


def _add_grid_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--cols", type=int, help="Base column count (default from config)")
    parser.add_argument("--rows", type=int, help="Base row count (default from config)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meshwarp",
        description="MeshWarp grid command line interface",
    )
    parser.add_argument("--config", help="Path to a meshwarp_config.json file")
    parser.add_argument("--log-level", dest="log_level", help="Log level (DEBUG, INFO, WARNING, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    rules_parser = sub.add_parser("parse-rules", help="Show how a subdivision rule string is interpreted")
    rules_parser.add_argument("rules", help="Rule string such as 'C1:4,R3:2'")
    _add_grid_arguments(rules_parser)
    rules_parser.set_defaults(func=_cmd_parse_rules)

    generate_parser = sub.add_parser("generate", help="Generate a grid and export it as JSON")
    _add_grid_arguments(generate_parser)
    generate_parser.add_argument("--rules", help="Subdivision rule string (default from config)")
    generate_parser.add_argument("--output", help=f"Output JSON path (default {DEFAULT_JSON_NAME})")
    generate_parser.set_defaults(func=_cmd_generate)

    palette_parser = sub.add_parser("list-palette", help="List the configured paint colors")
    palette_parser.set_defaults(func=_cmd_list_palette)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(None if argv is None else list(argv))
    settings = load_settings(args.config)
    configure_logging(args.log_level or settings.log_level)
    try:
        args.func(args, settings)
    except (OSError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        parser.error(str(exc))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
