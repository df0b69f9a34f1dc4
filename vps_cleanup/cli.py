#!/usr/bin/env python3
"""Command-line interface for vps-cleanup."""
import argparse
import json
import sys

from rich.rule import Rule
from rich.table import Table

from .core import config as config_module
from .core.errors import PreconditionError
from .services.orchestrator import build_context, require_root, run_cleanup
from .stages import PIPELINE
from .utils import output
from .utils.output import console

USAGE_EPILOG = """\
Supported: Ubuntu 22.04, Debian, AlmaLinux 8/9, CentOS 8/9, Rocky Linux 8/9, RHEL, Fedora.
Default: keep only the running kernel; purge old kernels and orphaned module directories.
Subcommands: stages, config"""


FLAGS = (
    ("--dry-run", "Only show the actions, do not perform them."),
    ("--keep-cloud-init", "Do NOT remove cloud-init (removed by default)."),
    ("--no-update", "Skip the package update/upgrade before cleaning."),
    ("--keep-one-backup", "Keep one backup kernel besides the running one."),
)
FLAG_NAMES = frozenset(flag for flag, _help in FLAGS) | {"--help"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vps-cleanup",
        allow_abbrev=False,
        description="Slim down a freshly provisioned Ubuntu/Debian or RHEL-family VPS.",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    for flag, help_text in FLAGS:
        parser.add_argument(flag, action="store_true", help=help_text)
    return parser


def split_args(argv: list) -> tuple:
    """Separate `--flag=value` forms of the switches, which argparse would reject fatally."""
    keep, rejected = [], []
    for arg in argv:
        if arg.startswith("--") and "=" in arg and arg.split("=", 1)[0] in FLAG_NAMES:
            rejected.append(arg)
        else:
            keep.append(arg)
    return keep, rejected


def _list_stages() -> None:
    """List the stages in run order."""
    console.print(Rule("[bold cyan]vps-cleanup: stages[/]", style="cyan"))
    console.print()
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Key", style="cyan")
    table.add_column("Stage", style="")
    for i, stage in enumerate(PIPELINE, 1):
        table.add_row(str(i), stage.key, stage.title)
    console.print(table)
    console.print()


def _run_config(argv: list) -> None:
    """Run the configuration tasks."""
    p = argparse.ArgumentParser(prog="vps-cleanup config", description="Manage configuration.")
    p.add_argument("--init", action="store_true", help="Create default config file")
    p.add_argument("--show", action="store_true", help="Show effective config")
    args = p.parse_args(argv)
    if args.init:
        path = config_module.init_config()
        console.print(Rule("[bold cyan]Config[/]", style="cyan"))
        console.print()
        console.print(f"  [green]✓[/] Created config at [cyan]{path}[/]")
        console.print()
        return
    if args.show:
        if not config_module.config_exists():
            console.print("[yellow]No config file found; showing defaults. Run: vps-cleanup config --init[/]")
        cfg = config_module.load()
        console.print(Rule("[bold cyan]Config[/]", style="cyan"))
        console.print()
        console.print(json.dumps(cfg, indent=2), markup=False)
        console.print()
        return
    p.print_help()


def main(argv=None):
    """Entry point. Returns the process exit status."""
    argv = argv if argv is not None else sys.argv[1:]
    if argv and argv[0] == "stages":
        _list_stages()
        return 0
    if argv and argv[0] == "config":
        _run_config(argv[1:])
        return 0

    parser = build_parser()
    argv, rejected = split_args(argv)
    args, unknown = parser.parse_known_args(argv)
    for arg in rejected + unknown:
        output.warn(f"Ignoring unsupported argument: {arg}")

    run_config = config_module.build_run_config(
        config_module.load(),
        dry_run=args.dry_run,
        keep_cloud_init=args.keep_cloud_init,
        no_update=args.no_update,
        keep_one_backup=args.keep_one_backup,
    )
    try:
        require_root()
        ctx = build_context(run_config)
        run_cleanup(ctx)
    except PreconditionError as e:
        output.error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        output.warn("Interrupted; the host is left in whatever state the finished steps produced.")
        return 130
    console.print()
    console.print(Rule("[bold green]✓ Done.[/]", style="green"))
    console.print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
