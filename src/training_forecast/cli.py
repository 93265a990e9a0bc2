#!/usr/bin/env python3
"""
training-forecast CLI.

Forward projection of fitness (CTL), fatigue (ATL) and form (TSB) from
your intervals.icu calendar.

Usage:
    training-forecast project --days 14     # Project the planned calendar
    training-forecast impact --tss 80       # Today's session vs. a rest day
    training-forecast taper --race-date 2025-05-04
    training-forecast week                  # Sustainability of the week ahead
    training-forecast --json week           # Any command as JSON
    training-forecast --plain week          # Any command as plain text
"""

import argparse
import json
import sys
from datetime import date
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich import box

from .analysis.impact import ImpactComparison, format_impact_preview, format_projection_rows
from .analysis.taper import STRESS_SOURCE_HISTORY, TaperRecommendation, format_taper_recommendation
from .analysis.weekly_impact import WeeklyImpactSummary, format_weekly_impact
from .config import get_settings
from .exceptions import ConfigurationError, DataSourceError, TrainingForecastError
from .models.load import ProjectionPoint
from .models.narrative import NARRATIVE_SOURCE_AI, Narrative
from .services.forecast_service import ForecastService, build_forecast_service
from .utils.log_sanitizer import configure_logging

console = Console()


def format_tsb_rich(tsb: float) -> Text:
    """Format TSB with rich colors."""
    if tsb > 10:
        color = "green"
        status = "Fresh"
    elif tsb >= 0:
        color = "green"
        status = "Peak"
    elif tsb >= -20:
        color = "yellow"
        status = "Building"
    elif tsb >= -30:
        color = "yellow"
        status = "Fatigued"
    else:
        color = "red"
        status = "Very Fatigued"
    return Text(f"{tsb:+.1f} ({status})", style=color)


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


def print_plain(text: str, narrative: Optional[Narrative] = None) -> None:
    """Plain-text output for pipes and logs."""
    print(text)
    if narrative is not None:
        print()
        print(narrative.headline)
        print(f"  {narrative.assessment}")
        print(f"  {narrative.recommendation}")


def projection_table(points: List[ProjectionPoint], title: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Day", style="cyan")
    table.add_column("TSS", justify="right")
    table.add_column("CTL", justify="right")
    table.add_column("ATL", justify="right")
    table.add_column("TSB", justify="right")

    for point in points:
        table.add_row(
            point.day_label,
            f"{point.training_stress:.0f}",
            f"{point.chronic_load:.1f}",
            f"{point.acute_load:.1f}",
            format_tsb_rich(point.form),
        )
    return table


def print_narrative(narrative: Optional[Narrative]) -> None:
    if narrative is None:
        return
    source = "AI" if narrative.source == NARRATIVE_SOURCE_AI else "rules"
    console.print(
        Panel(
            f"{narrative.assessment}\n\n[bold]{narrative.recommendation}[/bold]",
            title=narrative.headline,
            subtitle=f"[dim]{source}[/dim]",
            box=box.ROUNDED,
        )
    )
    console.print()


def cmd_project(args, service: ForecastService):
    """Project the planned calendar forward."""
    points = service.project(days=args.days, today=args.today)

    if args.json:
        print_json({"projection": [p.to_dict() for p in points]})
        return
    if args.plain:
        lines = ["Load Projection", "=" * 50] + format_projection_rows(points)
        print_plain("\n".join(lines))
        return

    console.print()
    console.print(Panel("[bold]Training Forecast - Load Projection[/bold]"))
    console.print()

    if not points:
        console.print("Nothing to project.")
        console.print()
        return

    console.print(projection_table(points, f"Next {len(points)} days"))
    console.print()


def cmd_impact(args, service: ForecastService):
    """Compare today's candidate session against a rest day."""
    comparison: ImpactComparison = service.impact_preview(args.tss, today=args.today)

    if args.json:
        print_json(comparison.to_dict())
        return
    if args.plain:
        print_plain(format_impact_preview(comparison), comparison.narrative)
        return

    console.print()
    console.print(Panel(f"[bold]Training Forecast - Workout Impact ({comparison.candidate_stress:.0f} TSS)[/bold]"))
    console.print()

    if not comparison.with_session:
        console.print("No projection available.")
        console.print()
        return

    summary = Table(box=box.SIMPLE, show_header=False)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value")
    summary.add_row("Tomorrow's form", Text.assemble(
        format_tsb_rich(comparison.tomorrow_form),
        f"  ({comparison.tomorrow_form_delta:+.1f} vs rest)",
    ))
    summary.add_row(
        "Fitness in 2 weeks",
        f"{comparison.with_session[-1].chronic_load:.1f} CTL ({comparison.two_week_load_delta:+.1f})",
    )
    summary.add_row("Lowest form (7d)", format_tsb_rich(comparison.lowest_form_next_week))
    if comparison.days_to_non_negative_form is None:
        recovery = "form stays negative"
    elif comparison.days_to_non_negative_form == 0:
        recovery = "form stays non-negative"
    else:
        recovery = f"{comparison.days_to_non_negative_form} days"
    summary.add_row("Back to positive form", recovery)
    summary.add_row("Peak-form days", str(len(comparison.peak_form_dates)))
    console.print(summary)

    console.print(projection_table(comparison.with_session, "With the session"))
    console.print()
    print_narrative(comparison.narrative)


def cmd_taper(args, service: ForecastService):
    """Recommend a taper for an upcoming race."""
    recommendation: TaperRecommendation = service.taper_recommendation(
        args.race_date, target_form=args.target_form, today=args.today
    )

    if args.json:
        print_json(recommendation.to_dict())
        return
    if args.plain:
        print_plain(format_taper_recommendation(recommendation), recommendation.narrative)
        return

    console.print()
    console.print(Panel(f"[bold]Training Forecast - Taper for {recommendation.race_date.strftime('%a %d %b %Y')}[/bold]"))
    console.print()

    if not recommendation.available:
        console.print(f"[yellow]Taper not available: {recommendation.reason}[/yellow]")
        console.print()
        print_narrative(recommendation.narrative)
        return

    best = recommendation.recommended
    source = "last 2 weeks" if recommendation.stress_estimate_source == STRESS_SOURCE_HISTORY else "current CTL"
    console.print(f"Days to race:  {recommendation.days_to_race}")
    console.print(f"Normal load:   {recommendation.stress_estimate:.0f} TSS/day ({source})")
    console.print(f"Target form:   {recommendation.target_form:+.0f}")
    console.print()

    table = Table(title="Taper options", box=box.ROUNDED)
    table.add_column("", width=1)
    table.add_column("Length", justify="right")
    table.add_column("Load", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("Race CTL", justify="right")
    table.add_column("Race TSB", justify="right")
    table.add_column("CTL cost", justify="right")

    for scenario in sorted(recommendation.alternatives, key=lambda s: s.selection_key()):
        is_best = scenario is best
        table.add_row(
            "*" if is_best else "",
            f"{scenario.length_days}d",
            f"{scenario.intensity_fraction:.0%}",
            scenario.start_date.strftime("%a %d %b"),
            f"{scenario.race_day_ctl:.1f}",
            format_tsb_rich(scenario.race_day_form),
            f"{scenario.ctl_loss:.1f}",
            style="bold" if is_best else None,
        )

    console.print(table)
    console.print()
    print_narrative(recommendation.narrative)


def cmd_week(args, service: ForecastService):
    """Summarize the planned week."""
    summary: WeeklyImpactSummary = service.week_impact(start=args.today, days=args.days)

    if args.json:
        print_json(summary.to_dict())
        return
    if args.plain:
        print_plain(format_weekly_impact(summary))
        return

    console.print()
    console.print(Panel(
        f"[bold]Training Forecast - Week Ahead "
        f"({summary.week_start.strftime('%b %d')} - {summary.week_end.strftime('%b %d')})[/bold]"
    ))
    console.print()

    console.print(f"Planned TSS:  {summary.total_stress:.0f}")
    console.print(f"CTL:          {summary.start_ctl:.1f} -> {summary.end_ctl:.1f} ({summary.ctl_delta:+.1f})")
    console.print(f"Form range:   {summary.min_form:+.1f} to {summary.max_form:+.1f}")
    console.print()

    labels = {s.date: s for s in summary.sessions}
    table = Table(box=box.ROUNDED)
    table.add_column("Day", style="cyan")
    table.add_column("Session")
    table.add_column("TSS", justify="right")
    table.add_column("TSB", justify="right")
    table.add_column("")

    for point in summary.projection:
        session = labels.get(point.date)
        label = session.label if session else "Rest"
        if session and not session.has_stress_estimate:
            label = f"{label} [dim](no TSS)[/dim]"
        flag = ""
        if point.date in summary.fatigue_warning_days:
            flag = "[red]fatigue[/red]"
        elif point.date in summary.peak_form_days:
            flag = "[green]peak[/green]"
        table.add_row(
            point.date.strftime("%a %d"),
            label,
            f"{point.training_stress:.0f}",
            format_tsb_rich(point.form),
            flag,
        )

    console.print(table)
    console.print()

    if summary.sustainable:
        console.print("[green]Sustainable week.[/green]")
    else:
        console.print(f"[red]Not sustainable: form bottoms out at {summary.min_form:+.1f}.[/red]")
    console.print()


COMMANDS = {
    "project": cmd_project,
    "impact": cmd_impact,
    "taper": cmd_taper,
    "week": cmd_week,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="training-forecast",
        description="training-forecast - fitness, fatigue and form projection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  training-forecast project --days 21
  training-forecast impact --tss 80
  training-forecast taper --race-date 2025-05-04 --target-form 15
  training-forecast week
  training-forecast --json impact --tss 120
  training-forecast --plain week
        """,
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="Print JSON instead of tables")
    output.add_argument("--plain", action="store_true", help="Print plain text instead of tables")
    parser.add_argument("--today", type=parse_date, default=None, help="Override today's date (YYYY-MM-DD)")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Project command
    project_p = subparsers.add_parser("project", help="Project the planned calendar forward")
    project_p.add_argument(
        "--days", "-d", type=int, default=14, help="Number of days to project"
    )

    # Impact command
    impact_p = subparsers.add_parser("impact", help="Preview the impact of a session today")
    impact_p.add_argument(
        "--tss", "-t", type=float, required=True, help="Estimated TSS of the session"
    )

    # Taper command
    taper_p = subparsers.add_parser("taper", help="Recommend a taper for a race")
    taper_p.add_argument(
        "--race-date", "-r", type=parse_date, required=True, help="Race date (YYYY-MM-DD)"
    )
    taper_p.add_argument(
        "--target-form", type=float, default=None, help="Desired race-day TSB"
    )

    # Week command
    week_p = subparsers.add_parser("week", help="Summarize the planned week")
    week_p.add_argument(
        "--days", "-d", type=int, default=7, help="Number of days to summarize"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        with build_forecast_service(settings) as service:
            COMMANDS[args.command](args, service)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        console.print("Set INTERVALS_API_KEY and INTERVALS_ATHLETE_ID in the environment or .env.")
        sys.exit(2)
    except DataSourceError as e:
        console.print(f"[red]Could not fetch training data: {e.message}[/red]")
        sys.exit(1)
    except TrainingForecastError as e:
        if args.json:
            print_json(e.to_dict())
        else:
            console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
