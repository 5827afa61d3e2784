"""Config commands -- view and modify the default render options.

Provides the ``clisynth config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~clisynth.models.GlobalConfig`).
"""

from __future__ import annotations

import typer

from clisynth.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective render options.

    Prints the config directory path followed by the options after applying
    the full precedence chain (global config, project config, environment).

    Example::

        clisynth config show
        clisynth --json config show
    """
    from clisynth.config import get_config_dir, resolve_render_options

    info(f"Config directory: {get_config_dir()}")
    format_response(resolve_render_options().model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Render option name (e.g. 'runnable', 'lib')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a default render option.

    The value is coerced to match the option's type (bool or str) and the
    result is validated before saving.

    Raises:
        typer.Exit: With code 2 if the option is unknown or the value is
            invalid.

    Example::

        clisynth config set runnable true
        clisynth config set lib argtide
    """
    from pydantic import ValidationError

    from clisynth.config import load_global_config, save_global_config
    from clisynth.generator import DEFAULT_RENDER_OPTIONS, merge_render_options
    from clisynth.models import GlobalConfig

    defaults = DEFAULT_RENDER_OPTIONS.model_dump()
    if key not in defaults:
        error(f"Unknown render option: {key}")
        raise typer.Exit(code=2)

    coerced: bool | str
    if isinstance(defaults[key], bool):
        coerced = value.lower() in ("true", "1", "yes")
    else:
        coerced = value

    config = load_global_config()
    render = {**config.render, key: coerced}
    try:
        merge_render_options(render)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(GlobalConfig(render=render))
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset the default render options.

    Asks for confirmation unless ``--force`` is active.

    Example::

        clisynth config reset
        clisynth --force config reset
    """
    from clisynth.config import save_global_config
    from clisynth.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all render options to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
