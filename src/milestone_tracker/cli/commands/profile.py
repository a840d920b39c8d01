"""Profile commands: init and profile."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.config import GENDERS, SKIN_TONES
from ...io.serializers import athlete_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, open_workspace


def _prompt_birthday() -> str:
    while True:
        raw = views.console.input("Birthday (YYYY-MM-DD): ").strip()
        try:
            date.fromisoformat(raw)
        except ValueError:
            views.print_error("Invalid date. Use YYYY-MM-DD, e.g. 1990-04-21")
            continue
        return raw


@app.command()
def init(
    name: Annotated[
        Optional[str],
        typer.Option("--name", help="Athlete name"),
    ] = None,
    birthday: Annotated[
        Optional[str],
        typer.Option("--birthday", "-b", help="Birthday (YYYY-MM-DD)"),
    ] = None,
    gender: Annotated[
        Optional[str],
        typer.Option("--gender", "-g", help="Gender: " + ", ".join(GENDERS)),
    ] = None,
    skin_tone: Annotated[
        Optional[str],
        typer.Option("--skin-tone", help="Avatar skin tone: " + ", ".join(SKIN_TONES)),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Create the athlete profile, or edit it if one exists.

    Editing keeps your current tier and all progress; only the options you
    pass are changed.  Missing name and birthday are asked for.
    """
    workspace = open_workspace(data_dir, require_profile=False)
    athletes = workspace.athletes

    if gender is not None and gender not in GENDERS:
        views.print_error(f"Gender must be one of: {', '.join(GENDERS)}")
        raise typer.Exit(1)
    if skin_tone is not None and skin_tone not in SKIN_TONES:
        views.print_error(f"Skin tone must be one of: {', '.join(SKIN_TONES)}")
        raise typer.Exit(1)
    if birthday is not None:
        try:
            date.fromisoformat(birthday)
        except ValueError:
            views.print_error(f"Invalid birthday: {birthday}. Expected YYYY-MM-DD")
            raise typer.Exit(1)

    existing = athletes.load_profile()

    if existing is not None:
        if name is not None:
            existing.name = name
        if birthday is not None:
            existing.birthday = birthday
        if gender is not None:
            existing.gender = gender
        if skin_tone is not None:
            existing.skin_tone = skin_tone
        if existing.birthday is None:
            existing.birthday = _prompt_birthday()
        athletes.save_profile(existing)
        views.print_success(f"Updated profile at {athletes.profile_path}")
        return

    if not name:
        name = views.console.input("Name: ").strip()
        if not name:
            views.print_error("Name is required")
            raise typer.Exit(1)
    if birthday is None:
        birthday = _prompt_birthday()

    profile = athletes.create_profile(
        name=name,
        birthday=birthday,
        gender=gender or "male",
        skin_tone=skin_tone or "neutral",
    )

    # Fresh start: a progress record from a previous profile must not carry over.
    workspace.engine.reset_all_progress()

    tier = workspace.engine.current_tier()
    views.print_success(f"Created profile for {profile.name} at {athletes.profile_path}")
    if tier is not None:
        views.print_info(f"Starting at tier 1: {tier.name}. Run 'status' to see your milestones.")


@app.command()
def profile(
    json_out: JsonOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show the athlete profile.
    """
    workspace = open_workspace(data_dir)
    athlete = workspace.athletes.load_profile()
    tier = workspace.engine.current_tier()

    if json_out:
        data = athlete_to_dict(athlete)
        data["age"] = athlete.age()
        data["tier_name"] = tier.name if tier else None
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return

    views.print_profile(athlete, tier.name if tier else None)
