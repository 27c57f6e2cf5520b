"""
gradlelens CLI.

Command-line interface for inspecting, validating and converting Android
build descriptors and for recording releases.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .core.config import get_config
from .core.exceptions import ConfigurationError, GradleLensError
from .core.logging import bind_context, clear_context, setup_logging
from .models.descriptor import BuildDescriptor
from .models.report import Severity
from .services.loader import DescriptorLoader, LoadOutput

app = typer.Typer(
    name="gradlelens",
    help="Inspect and validate Android application build descriptors",
    add_completion=False,
)

console = Console()

SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from . import __version__
        console.print(f"gradlelens v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """gradlelens: Android build descriptor loader and checker."""
    try:
        get_config()
    except ConfigurationError as e:
        _print_error(e)
        raise typer.Exit(1)


def _print_error(error: GradleLensError) -> None:
    console.print(f"[bold red]✗ {type(error).__name__}[/bold red]: {escape(str(error))}", highlight=False)


def parse_defines(defines: list[str] | None) -> dict[str, Any]:
    """Parse NAME=VALUE pairs; integers and true/false are converted."""
    symbols: dict[str, Any] = {}
    for item in defines or []:
        name, sep, raw = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{item}'", param_hint="--define")
        value: Any = raw
        if raw.lower() in ("true", "false"):
            value = raw.lower() == "true"
        elif raw.lstrip("-").isdigit():
            value = int(raw)
        symbols[name.strip()] = value
    return symbols


def _load(path: Path, defines: list[str] | None) -> LoadOutput:
    setup_logging(get_config())
    clear_context()
    bind_context(descriptor=path.name)
    try:
        return DescriptorLoader().load_file(path, parse_defines(defines))
    except GradleLensError as e:
        _print_error(e)
        raise typer.Exit(1)


def _print_warnings(output: LoadOutput) -> None:
    if not output.warnings:
        return
    console.print(f"\n[yellow]{len(output.warnings)} statement(s) not modelled:[/yellow]")
    for warning in output.warnings:
        console.print(f"  • {warning}", markup=False)


def _write_or_echo(content: str, output: Path | None) -> None:
    if output is None:
        typer.echo(content, nl=not content.endswith("\n"))
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {escape(str(output))}")


PATH_ARGUMENT = typer.Argument(
    ...,
    help="Path to build.gradle.kts or a structured .json descriptor",
    exists=True,
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
)

DEFINE_OPTION = typer.Option(
    None,
    "--define",
    "-D",
    help="Value for a dotted reference, e.g. flutter.minSdkVersion=21",
)


@app.command()
def inspect(
    path: Path = PATH_ARGUMENT,
    define: Optional[list[str]] = DEFINE_OPTION,
) -> None:
    """Show the descriptor declared by a build file."""
    output = _load(path, define)
    descriptor = output.descriptor
    application = descriptor.application

    console.print(Panel.fit(
        f"[bold blue]{application.application_id}[/bold blue]\n"
        f"{escape(application.version_name)} ({application.version_code})",
        border_style="blue",
    ))

    table = Table(title="Application")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Namespace", escape(application.namespace))
    table.add_row("Application ID", escape(application.application_id))
    table.add_row("Compile SDK", str(descriptor.android.compile_sdk or "-"))
    table.add_row("Min SDK", str(application.min_platform_version))
    table.add_row("Target SDK", str(application.target_platform_version))
    table.add_row("Version", escape(f"{application.version_name} ({application.version_code})"))
    table.add_row("Multidex", str(application.multi_dex_enabled))
    toolchain = descriptor.toolchain
    table.add_row("Java source/target", f"{toolchain.source_language_level or '-'} / {toolchain.target_language_level or '-'}")
    table.add_row("Kotlin jvmTarget", toolchain.compiler_extension_target or "-")
    if descriptor.flutter is not None:
        table.add_row("Flutter source", escape(descriptor.flutter.source))
    console.print(table)

    _print_variants(descriptor)
    _print_dependencies(descriptor)
    _print_warnings(output)


def _print_variants(descriptor: BuildDescriptor) -> None:
    if not descriptor.variants:
        return
    table = Table(title="Build Variants")
    table.add_column("Variant", style="cyan")
    table.add_column("Minify")
    table.add_column("Rules files")
    table.add_column("Signing")
    for variant in descriptor.variants:
        table.add_row(
            variant.name.value if variant.name else "?",
            str(bool(variant.minify)),
            escape(", ".join(ref.path for ref in variant.obfuscation_rule_files)) or "-",
            escape(variant.signing) if variant.signing else "[yellow]none[/yellow]",
        )
    console.print(table)


def _print_dependencies(descriptor: BuildDescriptor) -> None:
    if not descriptor.plugins and not descriptor.dependencies:
        return
    table = Table(title="Plugins & Dependencies")
    table.add_column("Kind", style="cyan")
    table.add_column("Declaration")
    for plugin in descriptor.plugins:
        table.add_row("plugin", escape(plugin.declaration))
    for dependency in descriptor.dependencies:
        table.add_row(dependency.scope.value, escape(dependency.coordinate))
    console.print(table)


@app.command()
def validate(
    path: Path = PATH_ARGUMENT,
    project_dir: Optional[Path] = typer.Option(
        None,
        "--project-dir",
        "-p",
        help="Module directory for referenced files (defaults to the file's directory)",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail on warnings as well as errors",
    ),
    define: Optional[list[str]] = DEFINE_OPTION,
) -> None:
    """Check a descriptor for completeness problems."""
    from .services.validation import CompletenessChecker

    output = _load(path, define)
    config = get_config()
    report = CompletenessChecker(config).check(output.descriptor, project_dir or path.parent)

    if report.findings:
        table = Table(title=f"Findings for {report.application_id}")
        table.add_column("Severity")
        table.add_column("Code", style="cyan")
        table.add_column("Path")
        table.add_column("Message")
        for finding in report.findings:
            style = SEVERITY_STYLES[finding.severity]
            table.add_row(
                f"[{style}]{finding.severity.value}[/{style}]",
                escape(finding.code),
                escape(finding.path),
                escape(finding.message),
            )
        console.print(table)
    _print_warnings(output)

    fail_on_warning = strict or config.validation.fail_on_warning
    if report.errors or (fail_on_warning and report.warnings):
        console.print(
            f"\n[bold red]✗ {len(report.errors)} error(s), {len(report.warnings)} warning(s)[/bold red]"
        )
        raise typer.Exit(1)

    console.print(
        f"\n[bold green]✓ Descriptor is complete[/bold green] ({len(report.warnings)} warning(s))"
    )


@app.command()
def export(
    path: Path = PATH_ARGUMENT,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write JSON here instead of stdout",
    ),
    define: Optional[list[str]] = DEFINE_OPTION,
) -> None:
    """Export a descriptor in structured JSON form."""
    from .services.render import to_json

    loaded = _load(path, define)
    _write_or_echo(to_json(loaded.descriptor), output)


@app.command()
def render(
    path: Path = PATH_ARGUMENT,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the build script here instead of stdout",
    ),
    define: Optional[list[str]] = DEFINE_OPTION,
) -> None:
    """Render a descriptor as a build.gradle.kts script."""
    from .services.render import ScriptRenderer

    loaded = _load(path, define)
    _write_or_echo(ScriptRenderer(get_config()).render(loaded.descriptor), output)


@app.command()
def release(
    path: Path = PATH_ARGUMENT,
    ledger_dir: Optional[Path] = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Ledger directory (defaults to GRADLELENS_LEDGER_PATH or ./.gradlelens)",
    ),
    check_only: bool = typer.Option(
        False,
        "--check",
        help="Only verify that versionCode increases; record nothing",
    ),
    define: Optional[list[str]] = DEFINE_OPTION,
) -> None:
    """Record a release and enforce increasing versionCode."""
    from .services.ledger import ReleaseLedger
    from .storage import LocalStorageBackend

    loaded = _load(path, define)
    config = get_config()
    storage = LocalStorageBackend(ledger_dir or config.ledger.base_path)
    ledger = ReleaseLedger(storage, config.ledger.prefix)
    application = loaded.descriptor.application

    async def run_async() -> None:
        if check_only:
            previous = await ledger.check_progression(loaded.descriptor)
            since = f" (last: {previous.version_code})" if previous else " (first release)"
            console.print(f"[bold green]✓ versionCode {application.version_code} is valid[/bold green]{since}")
            return
        record = await ledger.record(loaded.descriptor)
        console.print(
            f"[bold green]✓ Recorded[/bold green] {record.application_id} "
            f"{record.version_name} ({record.version_code})"
        )

    try:
        asyncio.run(run_async())
    except GradleLensError as e:
        _print_error(e)
        raise typer.Exit(1)


@app.command()
def history(
    application_id: str = typer.Argument(..., help="Application ID, e.g. com.example.app"),
    ledger_dir: Optional[Path] = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Ledger directory (defaults to GRADLELENS_LEDGER_PATH or ./.gradlelens)",
    ),
) -> None:
    """List recorded releases of an application."""
    from .services.ledger import ReleaseLedger
    from .storage import LocalStorageBackend

    config = get_config()
    setup_logging(config)
    ledger = ReleaseLedger(LocalStorageBackend(ledger_dir or config.ledger.base_path), config.ledger.prefix)
    records = asyncio.run(ledger.history(application_id))

    if not records:
        console.print(f"[yellow]No releases recorded for {escape(application_id)}[/yellow]")
        return

    table = Table(title=f"Releases of {escape(application_id)}")
    table.add_column("Version code", style="cyan")
    table.add_column("Version name")
    table.add_column("Recorded at")
    table.add_column("Descriptor hash")
    for record in records:
        table.add_row(
            str(record.version_code),
            escape(record.version_name),
            record.recorded_at.isoformat(timespec="seconds"),
            record.descriptor_hash[:12],
        )
    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(
        True,
        "--show",
        help="Show current configuration",
    ),
) -> None:
    """Show or manage configuration."""
    cfg = get_config()

    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Log Level", cfg.log_level)
    table.add_row("Script Suffixes", ", ".join(cfg.loader.script_suffixes))
    table.add_row("Structured Suffixes", ", ".join(cfg.loader.structured_suffixes))
    table.add_row("Require Release Signing", str(cfg.validation.require_release_signing))
    table.add_row("Check Referenced Files", str(cfg.validation.check_referenced_files))
    table.add_row("Fail On Warning", str(cfg.validation.fail_on_warning))
    table.add_row("Ledger Path", str(cfg.ledger.base_path))
    table.add_row("Script Indent", str(cfg.render.indent))

    console.print(table)

    console.print("\n[dim]Configure via environment variables:[/dim]")
    console.print("  GRADLELENS_LOG_LEVEL, GRADLELENS_LEDGER_PATH, GRADLELENS_INDENT")
    console.print("  GRADLELENS_REQUIRE_SIGNING, GRADLELENS_CHECK_FILES, GRADLELENS_FAIL_ON_WARNING")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
