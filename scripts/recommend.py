#!/usr/bin/env python3
"""
Cellar recommendation script.

Reads a JSON snapshot of a cellar (inventory, taste profile, consumption
history) and prints recommendations, drinking window alerts or bottles
worth saving for an occasion.

Usage:
    python scripts/recommend.py <snapshot.json> [tonight|purchase|contextual|alerts|occasion] [occasion] [food]
"""

import json
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cellarwise.alerts import AlertDetector
from cellarwise.constants import DrinkingStatus, UrgencyLevel
from cellarwise.drinking_window import format_drinking_window
from cellarwise.error_handling import CellarError
from cellarwise.reasoning import OpenAIReasoningService
from cellarwise.recommendations import RecommendationRanker
from cellarwise.schema import Wine
from cellarwise.selection import wines_for_special_occasion

MODES = ("tonight", "purchase", "contextual", "alerts", "occasion")

STATUS_STYLES = {
    DrinkingStatus.TOO_YOUNG: "cyan",
    DrinkingStatus.READY: "green",
    DrinkingStatus.PEAK: "bold green",
    DrinkingStatus.DECLINING: "yellow",
    DrinkingStatus.OVER_HILL: "red",
}


def create_recommendations_table(response):
    """Ranked recommendations with urgency and confidence."""
    table = Table(
        title="🍷 Recommendations",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
        title_style="bold white"
    )

    table.add_column("#", justify="right", width=3)
    table.add_column("Wine", style="bold white", width=36)
    table.add_column("Window", width=22)
    table.add_column("Urgency", justify="center", width=14)
    table.add_column("Confidence", justify="center", width=10)

    for rank, rec in enumerate(response.recommendations, 1):
        if rec.wine is not None:
            wine = rec.wine
            window = wine.drinking_window
            style = STATUS_STYLES.get(window.current_status, "white")
            window_text = f"[{style}]{window.current_status.display}[/{style}]\n{format_drinking_window(window)}"
            name = f"{wine.name} {wine.vintage or 'NV'}\n[dim]{wine.producer}[/dim]"
            urgency = UrgencyLevel.from_score(rec.urgency_score).display
        else:
            suggestion = rec.suggested_wine
            window_text = "[dim]to buy[/dim]"
            name = f"{suggestion.name}\n[dim]{suggestion.region or suggestion.producer}[/dim]"
            urgency = "-"

        table.add_row(str(rank), name, window_text, urgency, f"{rec.confidence:.0%}")

    return table


def create_alerts_table(alerts):
    """Wines entering peak, leaving peak and over the hill."""
    table = Table(
        title="⏰ Drinking Window Alerts",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
        title_style="bold white"
    )

    table.add_column("Alert", width=16)
    table.add_column("Wine", style="bold white", width=40)
    table.add_column("Window", width=16)

    for label, style, wines in (
        ("Over the hill", "red", alerts.over_hill),
        ("Leaving peak", "yellow", alerts.leaving_peak),
        ("Entering peak", "green", alerts.entering_peak),
    ):
        for wine in wines:
            table.add_row(
                f"[{style}]{label}[/{style}]",
                f"{wine.name} {wine.vintage or 'NV'}",
                format_drinking_window(wine.drinking_window)
            )

    return table


def create_occasion_table(wines):
    """Bottles at peak or ready, best first."""
    table = Table(
        title="🥂 Worth Opening for an Occasion",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
        title_style="bold white"
    )

    table.add_column("Wine", style="bold white", width=40)
    table.add_column("Status", width=12)
    table.add_column("Window", width=16)
    table.add_column("Rating", justify="center", width=8)

    for wine in wines:
        status = wine.drinking_window.current_status
        style = STATUS_STYLES[status]
        table.add_row(
            f"{wine.name} {wine.vintage or 'NV'}",
            f"[{style}]{status.display}[/{style}]",
            format_drinking_window(wine.drinking_window),
            f"{wine.personal_rating:g}" if wine.personal_rating is not None else "-"
        )

    return table


def build_ranker(console):
    """Use the OpenAI reasoning service when a key is configured."""
    if not os.getenv("OPENAI_API_KEY"):
        console.print("[dim]OPENAI_API_KEY not set, ranking locally[/dim]\n")
        return RecommendationRanker()
    return RecommendationRanker(reasoning_service=OpenAIReasoningService())


def main():
    """Main execution function."""
    console = Console()

    console.print()
    console.print(Panel.fit(
        "[bold white]🍷 Cellarwise[/bold white]\n"
        "[dim]Drinking windows & recommendations[/dim]",
        border_style="cyan"
    ))
    console.print()

    if len(sys.argv) < 2 or (len(sys.argv) > 2 and sys.argv[2] not in MODES):
        console.print("[bold red]Usage:[/bold red] python scripts/recommend.py <snapshot.json> "
                      "[tonight|purchase|contextual|alerts|occasion] [occasion] [food]")
        console.print()
        console.print("[bold cyan]Example:[/bold cyan]")
        console.print('  python scripts/recommend.py cellar.json contextual "dinner party" "roast lamb"')
        console.print()
        sys.exit(1)

    snapshot_path = Path(sys.argv[1])
    mode = sys.argv[2] if len(sys.argv) > 2 else "tonight"

    try:
        snapshot = json.loads(snapshot_path.read_text())

        if mode == "alerts":
            wines = [Wine.model_validate(row) for row in snapshot.get("inventory", [])]
            alerts = AlertDetector().detect(wines)
            if alerts.total:
                console.print(create_alerts_table(alerts))
            else:
                console.print("[green]✓[/green] No wines need attention right now")
            console.print()
            return

        if mode == "occasion":
            wines = [Wine.model_validate(row) for row in snapshot.get("inventory", [])]
            picks = wines_for_special_occasion(wines)
            if picks:
                console.print(create_occasion_table(picks))
            else:
                console.print("[yellow]Nothing at peak or ready yet[/yellow]")
            console.print()
            return

        request = {
            "userId": snapshot.get("userId", "local"),
            "mode": mode,
            "inventory": snapshot.get("inventory", []),
            "tasteProfile": snapshot.get("tasteProfile"),
            "consumptionHistory": snapshot.get("consumptionHistory", []),
        }
        if mode == "contextual":
            request["context"] = {
                "occasion": sys.argv[3] if len(sys.argv) > 3 else None,
                "foodPairing": sys.argv[4] if len(sys.argv) > 4 else None,
            }

        ranker = build_ranker(console)
        with console.status(f"[bold cyan]Ranking {mode} recommendations...", spinner="dots"):
            response = ranker.generate(request)

        console.print(Panel(response.reasoning, title="🎯 Verdict", border_style="bold blue", padding=(1, 2)))
        console.print()
        if response.recommendations:
            console.print(create_recommendations_table(response))
            console.print()
        if response.educational_notes:
            console.print(f"[dim]{response.educational_notes}[/dim]\n")
        for question in response.follow_up_questions or []:
            console.print(f"[cyan]?[/cyan] {question}")
        console.print()

    except FileNotFoundError:
        console.print(f"[bold red]Error:[/bold red] snapshot file {snapshot_path} not found")
        sys.exit(1)
    except (CellarError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
