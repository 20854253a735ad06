"""
Command-line interface for the candidate generator.

Usage:
    python -m timetabler periods --start 08:30 --end 15:00 --count 7 --break 12:00-12:30=Lunch
    python -m timetabler validate input.json
    python -m timetabler generate input.json -o candidates.json --keep 5 --attempts 200
    python -m timetabler view input.json candidates.json --candidate 0 --class 7a
    python -m timetabler sample -o sample.json --seed 1
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from .constraints import TeacherBlocklist
from .data.generator import GeneratorConfig, generate_sample_school, get_generation_stats, save_generated_school
from .data.models import CandidateSchedule, Period, SchoolBreak, TimetableData, load_timetable_from_json
from .engine import DEFAULT_ATTEMPTS, DEFAULT_KEEP, GenerateRequest, apply_candidate
from .output.schema import (
    GenerationOutput,
    OutputStatus,
    class_grid,
    load_generation_output,
    output_from_response,
)
from .timing import (
    MIN_PERIOD_MINUTES,
    TimeModelError,
    build_computed_periods,
    build_timeline_rows,
    resolve_periods,
    validate_breaks,
    validate_manual_periods,
)
from .worker import GenerationWorker

# Create Typer app
app = typer.Typer(
    name="timetabler",
    help="Randomized candidate schedule generator for school timetables.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()


# =============================================================================
# Helper Functions
# =============================================================================

def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich; INFO when verbose, warnings otherwise."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def load_input(input_path: Path) -> TimetableData:
    """Load and validate input data."""
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(code=1)

    try:
        return load_timetable_from_json(input_path)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Error loading input:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def load_output(output_path: Path) -> GenerationOutput:
    """Load a saved generation output."""
    if not output_path.exists():
        console.print(f"[red]Error:[/red] Output file not found: {output_path}")
        raise typer.Exit(code=1)

    try:
        return load_generation_output(output_path)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Error loading output:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def parse_break(value: str, index: int) -> SchoolBreak:
    """Parse 'HH:MM-HH:MM' or 'HH:MM-HH:MM=Name' into a SchoolBreak."""
    times, _, name = value.partition("=")
    start, sep, end = times.partition("-")
    if not sep:
        console.print(f"[red]Error:[/red] Invalid break '{value}', expected HH:MM-HH:MM[=Name]")
        raise typer.Exit(code=1)
    return SchoolBreak(
        id=f"b{index + 1}",
        name=name or f"Break {index + 1}",
        start_time=start.strip(),
        end_time=end.strip(),
    )


def print_summary(output: GenerationOutput) -> None:
    """Print run summary and ranked candidates."""
    ok = output.status == OutputStatus.OK and output.candidates
    status_color = "green" if ok else "red" if output.status == OutputStatus.ERROR else "yellow"
    console.print(Panel(
        Text(output.message, style=f"bold {status_color}"),
        title="Generation",
        subtitle=f"{output.attempts} attempts in {output.elapsed_seconds:.2f}s",
    ))

    if not output.candidates:
        return

    table = Table(title="Candidates", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Score", justify="right")
    table.add_column("Unplaced", justify="right")
    table.add_column("Filled", justify="right")

    for rank, candidate in enumerate(output.candidates):
        unplaced_style = "green" if candidate.unplaced == 0 else "red"
        table.add_row(
            str(rank),
            candidate.id,
            str(candidate.score),
            f"[{unplaced_style}]{candidate.unplaced}[/{unplaced_style}]",
            str(candidate.filled_count),
        )

    console.print(table)
    if output.duplicates:
        console.print(f"[dim]{output.duplicates} duplicate attempts discarded[/dim]")


# =============================================================================
# Commands
# =============================================================================

@app.command()
def periods(
    start: str = typer.Option("08:30", "--start", "-s", help="School day start (HH:MM)"),
    end: str = typer.Option("15:00", "--end", "-e", help="School day end (HH:MM)"),
    count: int = typer.Option(7, "--count", "-n", help="Periods per day", min=1, max=20),
    breaks: Optional[list[str]] = typer.Option(
        None,
        "--break", "-b",
        help="Break as HH:MM-HH:MM or HH:MM-HH:MM=Name (repeatable)",
    ),
    min_minutes: int = typer.Option(MIN_PERIOD_MINUTES, "--min-minutes", help="Shortest period", min=1),
) -> None:
    """
    Compute a period layout for a school day.

    Example:
        python -m timetabler periods --start 08:30 --end 15:00 --count 7 --break 12:00-12:30=Lunch
    """
    school_breaks = [parse_break(value, i) for i, value in enumerate(breaks or [])]

    try:
        layout = build_computed_periods(start, end, count, school_breaks, min_minutes)
    except TimeModelError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    table = Table(title=f"School day {start}-{end}", show_header=True, header_style="bold cyan")
    table.add_column("Row")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Minutes", justify="right")

    by_id = {p.id: p for p in layout}
    for row in build_timeline_rows(layout, school_breaks):
        if row.kind == "break":
            table.add_row(f"[yellow]{row.label}[/yellow]", row.start, row.end, "", style="dim")
        else:
            table.add_row(row.label, row.start, row.end, str(by_id[row.id].duration_minutes))

    console.print(table)


@app.command()
def validate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to timetable JSON file to validate",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show detailed validation results",
    ),
) -> None:
    """
    Validate a timetable document before generating.

    Checks for:
    - Valid JSON structure
    - Schema compliance and reference integrity
    - Day layout (breaks and periods)
    - Requirement load against open cells and teacher availability

    Example:
        python -m timetabler validate input.json
    """
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    if not input_file.exists():
        console.print(f"[red]Error:[/red] File not found: {input_file}")
        raise typer.Exit(code=1)

    # Step 1: JSON parsing
    console.print("[cyan]1. Checking JSON syntax...[/cyan]")
    try:
        with open(input_file) as f:
            json.load(f)
        console.print("   [green]JSON syntax is valid[/green]")
    except json.JSONDecodeError as e:
        console.print(f"   [red]Invalid JSON:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    # Step 2: Schema validation
    console.print("[cyan]2. Validating against schema...[/cyan]")
    try:
        data = load_timetable_from_json(input_file)
        console.print("   [green]Schema validation passed[/green]")
    except ValidationError as e:
        console.print("   [red]Schema validation failed:[/red]")
        for line in str(e).split("\n"):
            console.print(f"   {escape(line)}")
        raise typer.Exit(code=1)

    # Step 3: Day layout
    console.print("[cyan]3. Checking day layout...[/cyan]")
    settings = data.settings
    try:
        validate_breaks(settings.breaks, settings.day_start_time, settings.day_end_time)
        timed = [p for p in settings.schedulable_periods if p.start and p.end]
        if settings.periods and len(timed) == len(settings.schedulable_periods):
            validate_manual_periods(timed, settings.day_start_time, settings.day_end_time, settings.breaks)
        layout = resolve_periods(
            settings.periods,
            settings.day_start_time,
            settings.day_end_time,
            settings.period_count,
            settings.breaks,
        )
        console.print(f"   [green]Day layout is valid ({len(layout)} periods)[/green]")
    except TimeModelError as e:
        console.print(f"   [red]Invalid day layout:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    # Step 4: Load against capacity
    console.print("[cyan]4. Checking requirement load...[/cyan]")
    warnings = _load_warnings(data, layout)

    if warnings:
        console.print("   [yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"   - {w}")
    else:
        console.print("   [green]No load issues[/green]")

    # Summary
    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")

    for key, value in data.summary().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)

    if verbose:
        console.print("\n[bold]Requirements per class:[/bold]")
        for class_id in data.class_ids:
            reqs = data.get_class_requirements(class_id)
            total = sum(r.periods_per_cycle for r in reqs)
            console.print(f"  {class_id}: {total} lessons over {len(reqs)} subjects")

    console.print("\n[green]Validation complete.[/green]\n")


def _load_warnings(data: TimetableData, layout: list[Period]) -> list[str]:
    """Requirement loads that cannot all be placed, whatever the attempt."""
    warnings = []
    days = data.settings.days
    open_periods = [p for p in layout if not p.is_break]
    cells_per_class = len(days) * len(open_periods)

    if not days:
        warnings.append("No days configured; nothing can be placed")

    for class_id in data.class_ids:
        required = sum(r.periods_per_cycle for r in data.get_class_requirements(class_id))
        if required > cells_per_class:
            warnings.append(
                f"Class '{class_id}' needs {required} lessons but has only {cells_per_class} cells"
            )

    blocklist = TeacherBlocklist(data.teacher_blocked)
    for req in data.requirements:
        teachers = req.allowed_teacher_ids or data.teacher_ids
        if not teachers:
            warnings.append(f"Requirement {req.id}: no teachers exist")
            continue
        free = any(
            not blocklist.is_blocked(t, day, p.id)
            for t in teachers for day in days for p in open_periods
        )
        if not free:
            warnings.append(f"Requirement {req.id}: every allowed teacher is blocked in every slot")

    return warnings


@app.command()
def generate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to timetable JSON file",
        exists=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write candidates JSON",
    ),
    keep: int = typer.Option(DEFAULT_KEEP, "--keep", "-k", help="Candidates to keep", min=1, max=100),
    attempts: int = typer.Option(
        DEFAULT_ATTEMPTS, "--attempts", "-a", help="Randomized attempts to run", min=1, max=5000,
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Base seed for reproducible runs"),
    lock: Optional[list[str]] = typer.Option(
        None,
        "--lock", "-l",
        help="Slot key day|periodId|classId to keep unchanged (repeatable)",
    ),
    apply_best: Optional[Path] = typer.Option(
        None,
        "--apply-best",
        help="Write the input with its grid replaced by the best candidate",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    Generate ranked candidate schedules.

    Runs the attempts in a background worker and prints the best candidates.

    Example:
        python -m timetabler generate input.json -o candidates.json --keep 5 --attempts 200
    """
    configure_logging(verbose)
    console.print(f"\n[bold]Loading input from:[/bold] {input_file}")
    data = load_input(input_file)

    console.print(
        f"[green]Loaded:[/green] {len(data.requirements)} requirements "
        f"({data.total_required_lessons} lessons), {len(data.entities.classes)} classes, "
        f"{len(data.entities.teachers)} teachers"
    )

    try:
        request = GenerateRequest(
            data=data,
            locked_slots=lock or [],
            keep=keep,
            attempts=attempts,
            seed=seed,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid request:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]Generating ({attempts} attempts, keeping {keep})...[/bold]")
    with GenerationWorker() as worker:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Running placement attempts...", total=None)
            response = worker.submit(request).result()

    result = output_from_response(response, request)

    if result.status == OutputStatus.ERROR:
        console.print(f"\n[red]Error:[/red] {escape(result.error or '')}")
        raise typer.Exit(code=1)

    console.print()
    print_summary(result)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            f.write(result.to_json())
        console.print(f"\n[green]Candidates saved to:[/green] {output}")

    if apply_best:
        if result.best is None:
            console.print("\n[yellow]No candidate to apply.[/yellow]")
        else:
            apply_best.parent.mkdir(parents=True, exist_ok=True)
            with open(apply_best, "w") as f:
                json.dump(apply_candidate(data, result.best).to_wire(), f, indent=2)
            console.print(f"[green]Applied {result.best.id} to:[/green] {apply_best}")

    console.print()


@app.command()
def view(
    input_file: Path = typer.Argument(
        ...,
        help="Path to timetable JSON file",
        exists=True,
    ),
    output_file: Path = typer.Argument(
        ...,
        help="Path to candidates JSON file",
        exists=True,
    ),
    candidate: int = typer.Option(0, "--candidate", "-c", help="Candidate rank to show", min=0),
    class_id: Optional[str] = typer.Option(
        None,
        "--class", "-C",
        help="Show a single class ID",
    ),
) -> None:
    """
    Display a candidate's grid per class.

    Examples:
        python -m timetabler view input.json candidates.json
        python -m timetabler view input.json candidates.json --candidate 2 --class 7a
    """
    data = load_input(input_file)
    result = load_output(output_file)

    if candidate >= len(result.candidates):
        console.print(
            f"[red]Error:[/red] Candidate {candidate} not found "
            f"({len(result.candidates)} candidates in file)"
        )
        raise typer.Exit(code=1)

    if class_id is not None and class_id not in data.class_ids:
        console.print(f"[red]Error:[/red] Class '{class_id}' not found")
        console.print(f"Available classes: {', '.join(data.class_ids)}")
        raise typer.Exit(code=1)

    chosen = result.candidates[candidate]
    console.print(Panel(
        f"[bold]{chosen.id}[/bold]  score {chosen.score}  unplaced {chosen.unplaced}",
        title="Candidate",
    ))

    try:
        layout = resolve_periods(
            data.settings.periods,
            data.settings.day_start_time,
            data.settings.day_end_time,
            data.settings.period_count,
            data.settings.breaks,
        )
    except TimeModelError as e:
        console.print(f"[red]Invalid day layout:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    for cid in ([class_id] if class_id else data.class_ids):
        _print_class_grid(data, chosen, cid, layout)
        console.print()


def _print_class_grid(data: TimetableData, candidate: CandidateSchedule, class_id: str, layout: list[Period]) -> None:
    """Print one class's grid: periods down, days across."""
    subjects = data.names("subjects")
    teachers = data.names("teachers")
    rooms = data.names("rooms")
    grid = class_grid(candidate, class_id, data.settings.days, layout)

    table = Table(title=data.names("classes").get(class_id, class_id), show_header=True, header_style="bold cyan")
    table.add_column("Period", style="dim")
    for day in grid.days:
        table.add_column(day, justify="center")

    for period, row in zip(grid.periods, grid.cells):
        if period.is_break:
            table.add_row(period.label, *["-" for _ in grid.days], style="dim")
            continue
        cells = []
        for value in row:
            if value is None:
                cells.append("")
                continue
            text = f"{subjects.get(value.subject_id, value.subject_id)}\n{teachers.get(value.teacher_id, value.teacher_id)}"
            if value.room_id:
                text += f"\n[dim]{rooms.get(value.room_id, value.room_id)}[/dim]"
            cells.append(text)
        table.add_row(str(period), *cells)

    console.print(table)


@app.command()
def sample(
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write the sample document (prints JSON if omitted)",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    classes: int = typer.Option(4, "--classes", help="Number of classes", min=1, max=24),
    teachers: int = typer.Option(10, "--teachers", help="Number of teachers", min=1, max=200),
) -> None:
    """
    Generate a sample timetable document.

    Example:
        python -m timetabler sample -o sample.json --seed 1
    """
    data = generate_sample_school(GeneratorConfig(
        num_teachers=teachers,
        num_classes=classes,
        num_classrooms=classes,
        seed=seed,
    ))

    if output is None:
        console.print_json(json.dumps(data.to_wire()))
        return

    save_generated_school(data, output)
    console.print(f"[green]Sample saved to:[/green] {output}")

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    for key, value in get_generation_stats(data).items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
