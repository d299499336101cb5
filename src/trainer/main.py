"""
Trainer - CLI Entry Point.

Usage:
    trainer health               Check configuration and backend reachability
    trainer version              Show version information
    trainer onboarding status    Show saved onboarding progress
    trainer onboarding resume    Show the "welcome back" summary
    trainer onboarding reset     Discard saved onboarding progress
    trainer onboarding phases    List the onboarding phases
    trainer --help               Show help
"""

import asyncio
import logging

import typer
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table

app = typer.Typer(
    name="trainer",
    help="Trainer - AI personal trainer client.",
    add_completion=False,
)
onboarding_app = typer.Typer(help="Inspect or reset local onboarding state.")
app.add_typer(onboarding_app, name="onboarding")

console = Console()


@app.callback()
def main() -> None:
    """Configure logging from settings before any command runs."""
    from trainer.config import settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def health() -> None:
    """Check configuration and backend reachability."""
    from trainer.api import TrainerAPIClient
    from trainer.config import get_settings

    console.print("\n[bold]Trainer Health Check[/bold]\n")

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)

    console.print("✅ Configuration loaded")
    console.print(f"   Environment: {settings.trainer_env}")
    console.print(f"   Log level: {settings.log_level}")
    console.print(f"   Data dir: {settings.data_dir}")

    if settings.supabase_url.startswith("https://") and settings.supabase_anon_key:
        console.print("✅ Supabase configured")
    else:
        console.print("❌ Supabase URL or anon key missing")

    async def _ping() -> bool:
        async with TrainerAPIClient(token_provider=lambda: None) as client:
            return await client.ping()

    with Live(Spinner("dots", text=f"Contacting {settings.api_base_url}..."), console=console, transient=True):
        reachable = asyncio.run(_ping())

    if reachable:
        console.print(f"✅ Backend reachable at {settings.api_base_url}")
        console.print("\n[green]All checks passed![/green]")
    else:
        console.print(f"❌ Backend unreachable at {settings.api_base_url}")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from trainer import __version__

    console.print(f"Trainer version {__version__}")


# =============================================================================
# Onboarding
# =============================================================================


@onboarding_app.command("status")
def onboarding_status() -> None:
    """Show the saved onboarding state."""
    from onboarding.persistence import StateStorage
    from onboarding.state import display_title

    storage = StateStorage()
    state = storage.load()
    if state is None:
        console.print("[dim]No saved onboarding state.[/dim]")
        return

    table = Table(show_header=False, box=None)
    table.add_row("File", str(storage.path))
    table.add_row("Version", str(state.state_version))
    table.add_row("Phase", f"{display_title(state.current_phase)} ({state.current_phase.value})")
    table.add_row("Step", str(state.current_step))
    table.add_row("Started", "yes" if state.has_started_onboarding else "no")
    table.add_row("Pending email", state.pending_email or "-")
    table.add_row("Intake id", state.intake_id or "-")
    table.add_row("Goal contract id", state.goal_contract_id or "-")
    table.add_row("Program id", state.program_id or "-")
    table.add_row("Updated", state.updated_at.isoformat())
    console.print(Panel.fit(table, title="Onboarding", border_style="green"))


@onboarding_app.command("resume")
def onboarding_resume() -> None:
    """Show what the resume prompt would offer."""
    from onboarding.store import OnboardingStore

    store = OnboardingStore.open()
    if not store.needs_resume_gate:
        console.print("[dim]Nothing to resume.[/dim]")
        return

    summary = store.resume_summary()
    greeting = f"Welcome back, {summary.user_name}." if summary.user_name else "Welcome back."
    lines = [
        f"[bold]{greeting}[/bold]",
        f"You were {summary.questions_answered} of {summary.total_questions} questions in.",
    ]
    if summary.section_label:
        lines.append(f"[dim]Section: {summary.section_label}[/dim]")
    console.print(Panel.fit("\n".join(lines), title="Resume", border_style="blue"))


@onboarding_app.command("reset")
def onboarding_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Discard saved onboarding progress and start over."""
    from onboarding.store import OnboardingStore

    if not yes and not typer.confirm("Discard all onboarding progress?"):
        raise typer.Abort()

    store = OnboardingStore.open()
    store.start_over()
    console.print(f"✅ Onboarding reset ({store.storage.path})")


@onboarding_app.command("phases")
def onboarding_phases() -> None:
    """List onboarding phases with their back-navigation rules."""
    from onboarding.state import (
        PHASE_ORDER,
        display_title,
        hide_back_button,
        previous_phase,
        requires_back_confirmation,
    )

    table = Table(title="Onboarding Phases")
    table.add_column("Phase")
    table.add_column("Title")
    table.add_column("Back to")
    table.add_column("Back button")
    table.add_column("Confirm back")

    for phase in PHASE_ORDER:
        back = previous_phase(phase)
        table.add_row(
            phase.value,
            display_title(phase),
            back.value if back else "-",
            "hidden" if hide_back_button(phase) else "shown",
            "yes" if requires_back_confirmation(phase) else "",
        )
    console.print(table)


if __name__ == "__main__":
    app()
