"""
Command-line interface for rollblock.

This module provides a CLI for playing the rolling-block puzzle in a
terminal, replaying move scripts with full logging, inspecting the built-in
levels and managing configuration files.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from rollblock.core.config import Config, load_config, create_default_config, validate_config
from rollblock.core.registry import ENVIRONMENT_REGISTRY
from rollblock.game import Direction, RunController, default_catalog
from rollblock.runner import ReplayRunner
from rollblock.utils.display import StatusDisplay, LiveLogger
from rollblock.utils.renderer import render_ascii


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    catalog = default_catalog()

    parser = argparse.ArgumentParser(
        description="rollblock: rolling-block puzzle engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Play in the terminal
  rollblock play

  # Replay a move script and log every step
  rollblock replay --script "RDDRRDR"

  # Inspect the built-in levels
  rollblock list-levels
  rollblock show-level 2

  # Create and check a configuration file
  rollblock create-config --output config.yaml
  rollblock validate-config config.yaml

Built-in levels: {catalog.max_level}
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    play_parser = subparsers.add_parser("play", help="Play interactively in the terminal")
    play_parser.add_argument("--config", "-c", help="Path to configuration file")
    play_parser.add_argument("--level", type=int, help="Override start level")

    replay_parser = subparsers.add_parser("replay", help="Replay a move script")
    replay_parser.add_argument("--config", "-c", help="Path to configuration file")
    script_group = replay_parser.add_mutually_exclusive_group(required=True)
    script_group.add_argument("--script", "-s", help="Move script, e.g. 'RRD S UUUU'")
    script_group.add_argument("--script-file", "-f", help="File holding a move script")
    replay_parser.add_argument("--level", type=int, help="Override start level")
    replay_parser.add_argument("--output-dir", help="Override log directory")
    replay_parser.add_argument("--save-images", action="store_true", help="Save a PNG per step")
    replay_parser.add_argument("--no-save", action="store_true", help="Do not write logs or results")
    replay_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the final results")

    subparsers.add_parser("list-levels", help="List the built-in levels")

    show_parser = subparsers.add_parser("show-level", help="Print one built-in level")
    show_parser.add_argument("level", type=int, help="Level index (1-based)")

    config_parser = subparsers.add_parser("create-config", help="Create default configuration file")
    config_parser.add_argument("--output", "-o", default="config.yaml", help="Output configuration file")
    config_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    validate_parser = subparsers.add_parser("validate-config", help="Validate configuration file")
    validate_parser.add_argument("config", help="Configuration file to validate")
    validate_parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")

    return parser


def _load_config_or_default(path: Optional[str], logger: LiveLogger) -> Config:
    if not path:
        return Config()
    logger.log_info(f"Loading configuration from: {path}")
    return load_config(path)


def play_command(args) -> int:
    """Execute play command."""
    logger = LiveLogger(verbose=True)
    try:
        config = _load_config_or_default(args.config, logger)
        if args.level is not None:
            config.engine.start_level = args.level
        controller = RunController(config.engine)
    except (FileNotFoundError, IndexError, ValueError, yaml.YAMLError) as e:
        logger.log_error(f"Failed to start: {e}")
        return 1

    StatusDisplay.print_header("rollblock")
    print("Moves: l/r/u/d (several per line allowed), s = swap half, n = new run, q = quit")

    while True:
        controller.advance_until_ready()
        for event in controller.drain_events():
            if event.kind not in ("move", "swap"):
                logger.log_event(event.kind, event.details)
        snapshot = controller.snapshot()
        print()
        print(render_ascii(snapshot))
        print(f"Level {snapshot.level_index}  moves {snapshot.moves_count}  "
              f"misses {snapshot.miss_count}/{snapshot.miss_limit}  time {snapshot.elapsed_seconds:.1f}s")
        if snapshot.game_over:
            print("All levels cleared!" if snapshot.won else "Game over.")

        try:
            line = input("> ").strip().lower()
        except EOFError:
            return 0

        for char in line.replace(" ", ""):
            if char == "q":
                return 0
            if char == "n":
                controller.submit_restart()
            elif char == "s":
                controller.submit_toggle_active_half()
            elif char in "lrud":
                controller.submit_move(Direction.parse(char))
            else:
                logger.log_warning(f"Ignoring unknown key '{char}'")
                continue
            controller.advance_until_ready()


def replay_command(args) -> int:
    """Execute replay command."""
    logger = LiveLogger(verbose=True)
    try:
        config = _load_config_or_default(args.config, logger)
        if args.level is not None:
            config.engine.start_level = args.level
        if args.output_dir:
            config.runner.log_dir = args.output_dir
        if args.save_images:
            config.runner.save_images = True
        if args.quiet:
            config.runner.verbose = False

        script = args.script
        if args.script_file:
            script = Path(args.script_file).read_text(encoding="utf-8")

        runner = ReplayRunner(config)
        try:
            results = runner.run(script, save=not args.no_save)
        finally:
            runner.close()
    except (FileNotFoundError, IndexError, KeyError, ValueError, yaml.YAMLError) as e:
        logger.log_error(f"Replay failed: {e}")
        return 1

    if args.quiet:
        StatusDisplay.print_results(results, "Replay Results")
    return 0


def list_levels_command(args) -> int:
    """Execute list-levels command."""
    StatusDisplay.print_section("Built-in Levels")
    for level in default_catalog():
        width, height = level.size
        features = []
        if level.switches:
            features.append(f"{len(level.switches)} switches")
        if level.splitters:
            features.append(f"{len(level.splitters)} splitter")
        print(f"  {level.index}. {level.name:<14} {width}x{height}  start {level.start}  "
              f"target {level.target}  {', '.join(features)}")
    return 0


def show_level_command(args) -> int:
    """Execute show-level command."""
    catalog = default_catalog()
    try:
        level = catalog.get(args.level)
    except IndexError as e:
        print(f"❌ {e}")
        return 1

    StatusDisplay.print_section(f"Level {level.index}: {level.name}")
    for row in level.layout:
        print(f"  {row}")
    print(f"\n  start {level.start}, target {level.target}")
    for link in level.switches:
        cells = ", ".join(str(c) for c in link.bridges)
        print(f"  switch {link.switch} toggles {cells}")
    for splitter in level.splitters:
        print(f"  splitter {splitter.cell} sends A to {splitter.destination_a}, "
              f"B to {splitter.destination_b} (active {splitter.active_half.name})")
    return 0


def create_config_command(args) -> int:
    """Execute create-config command."""
    logger = LiveLogger(verbose=True)
    StatusDisplay.print_header("Creating Configuration File")

    if Path(args.output).exists() and not args.force:
        logger.log_warning(f"Configuration file already exists: {args.output} (use --force to overwrite)")
        return 1

    try:
        config = create_default_config(args.output)
    except OSError as e:
        logger.log_error(f"Failed to create config: {e}")
        return 1

    logger.log_info(f"Configuration created: {args.output}")
    StatusDisplay.print_results({
        "Output File": args.output,
        "Environment Type": config.environment.type,
        "Start Level": config.engine.start_level,
        "Miss Limit": config.engine.miss_limit,
    }, "Configuration Summary")
    logger.log_info("Validate it with: rollblock validate-config " + args.output)
    return 0


def validate_config_command(args) -> int:
    """Execute validate-config command."""
    logger = LiveLogger(verbose=True)
    StatusDisplay.print_header("Configuration Validation")

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        logger.log_error(f"Configuration file not found: {args.config}")
        return 1
    except (ValueError, yaml.YAMLError) as e:
        logger.log_error(f"Failed to load config: {e}")
        return 1

    StatusDisplay.print_config({
        "Experiment": config.runner.experiment_name,
        "Environment": config.environment.type,
        "Start Level": config.engine.start_level,
        "Tick (ms)": config.engine.tick_ms,
        "Input Gate (ticks)": config.engine.input_gate_ticks,
        "Log Dir": config.runner.log_dir,
    }, "Configuration Overview")

    issues = validate_config(config)
    errors = [issue for issue in issues if issue.startswith("ERROR")]
    warnings = [issue for issue in issues if not issue.startswith("ERROR")]
    if config.environment.type not in ENVIRONMENT_REGISTRY:
        errors.append(f"ERROR: No environment registered as '{config.environment.type}'")

    if args.strict and warnings:
        errors.extend(warnings)
        warnings = []

    for i, error in enumerate(errors, 1):
        logger.log_error(f"{i}. {error.replace('ERROR: ', '')}")
    for i, warning in enumerate(warnings, 1):
        logger.log_warning(f"{i}. {warning.replace('WARNING: ', '')}")

    StatusDisplay.print_results({
        "Status": "FAILED" if errors else "VALID",
        "Errors Found": len(errors),
        "Warnings Found": len(warnings),
    }, "Validation Summary")
    return 1 if errors else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    command_handlers = {
        "play": play_command,
        "replay": replay_command,
        "list-levels": list_levels_command,
        "show-level": show_level_command,
        "create-config": create_config_command,
        "validate-config": validate_config_command,
    }

    handler = command_handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return handler(args)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
