"""
Command-Line Interface for FireSim.

Purpose
-------
Runs Monte Carlo projections, prints representative-path diagnostics and
converts shareable query strings without writing Python code.

Commands
--------
- simulate: Run the Monte Carlo projection and print percentile results
- diagnostics: Show year-by-year tables of representative paths
- url: Encode/decode shareable query strings
- config: Create, validate and display parameter files
- info: Show version and dependency information

Seeds
-----
The CLI is the only place where a seed may come from the clock: when
--seed is omitted a fresh one is generated here, printed, and embedded in
the shareable query string so the run can be reproduced exactly.

Example Usage
-------------
    # Canonical scenario, reproducible
    $ firesim simulate --seed 42

    # From a parameter file, nominal view, saving outputs
    $ firesim simulate -c scenario.json --view nominal -o results/

    # Re-run a shared query string
    $ firesim simulate --query "startingAssets=100000&annualReturn=0.07&seed=42"

    # Show the 10th/50th/90th percentile paths year by year
    $ firesim diagnostics --seed 42
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click

# Version
__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Route library logs to stderr at *level*."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )


def default_seed() -> int:
    """Fresh seed from the wall clock (non-reproducible by definition)."""
    return time.time_ns() // 1_000_000 % 1_000_000


def _parse_ranks(value: str) -> Tuple[float, ...]:
    try:
        ranks = tuple(float(x.strip()) for x in value.split(",") if x.strip())
    except ValueError as e:
        raise click.BadParameter(f"ranks must be comma-separated numbers ({e})")
    if not ranks:
        raise click.BadParameter("at least one rank is required")
    return tuple(int(r) if r.is_integer() else r for r in ranks)


def _param_options(func):
    """Options shared by every command that runs a simulation."""
    options = [
        click.option("--config", "-c", "config_file",
                     type=click.Path(exists=True, path_type=Path), default=None,
                     help="Parameter file (JSON); flags below override it"),
        click.option("--query", "-q", type=str, default=None,
                     help="Shareable query string or URL; flags below override it"),
        click.option("--starting-assets", type=float, default=None,
                     help="Balance before the first year (default: 100000)"),
        click.option("--annual-return", type=float, default=None,
                     help="Target geometric annual return (default: 0.07)"),
        click.option("--initial-contribution", type=float, default=None,
                     help="First-year contribution (default: 20000)"),
        click.option("--contribution-growth", type=float, default=None,
                     help="Yearly contribution growth (default: 0.05)"),
        click.option("--inflation", type=float, default=None,
                     help="Target compound inflation (default: 0.025)"),
        click.option("--years", "-T", type=int, default=None,
                     help="Projection horizon in years (default: 30)"),
        click.option("--paths", "-n", type=int, default=None,
                     help="Number of Monte Carlo paths (default: 100)"),
        click.option("--seed", "-s", type=int, default=None,
                     help="Base seed; generated from the clock when omitted"),
        click.option("--workers", type=int, default=None,
                     help="Worker processes for parallel paths"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_run(ctx: click.Context, kw: dict):
    """Resolve parameters, seed and view from file / query / flags."""
    from .config import SimulationConfig
    from .exceptions import FireSimError
    from .serialization import from_query_string, load_params, params_from_dict, params_to_dict

    settings = ctx.obj["settings"]
    try:
        data = {}
        seed = None
        view = None
        if kw.get("config_file"):
            data.update(params_to_dict(load_params(kw["config_file"])))
        if kw.get("query"):
            state = from_query_string(kw["query"])
            data.update(params_to_dict(state.params))
            seed, view = state.seed, state.view

        overrides = {
            "starting_assets": kw.get("starting_assets"),
            "annual_return": kw.get("annual_return"),
            "initial_contribution": kw.get("initial_contribution"),
            "contribution_growth_rate": kw.get("contribution_growth"),
            "inflation_rate": kw.get("inflation"),
            "years": kw.get("years"),
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        params = params_from_dict(data)

        if kw.get("seed") is not None:
            seed = kw["seed"]
        if seed is None:
            seed = default_seed()
            logger.info("No seed given; generated seed %d", seed)

        config = SimulationConfig(
            n_paths=kw["paths"] if kw.get("paths") is not None else settings.n_paths,
            seed=seed,
            max_workers=kw.get("workers"),
        )
    except FireSimError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Error: invalid simulation settings: {e}", err=True)
        sys.exit(1)
    return params, config, view


@click.group()
@click.version_option(version=__version__, prog_name="firesim")
@click.option("--quiet", is_flag=True, help="Suppress non-essential output")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, quiet: bool, verbose: bool) -> None:
    """
    FireSim - Monte Carlo FIRE Projection.

    Projects an investment balance over a multi-year horizon under
    randomized returns and inflation and reports percentile outcomes.

    Use 'firesim COMMAND --help' for command-specific help.
    """
    from rich.console import Console

    from .config import AppSettings

    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.effective_log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


@main.command()
@_param_options
@click.option(
    "--view",
    type=click.Choice(["real", "nominal"]),
    default=None,
    help="Balance view (default: real, or FIRESIM_DEFAULT_VIEW)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output directory for results (JSON + bands CSV)"
)
@click.option("--plot", type=click.Path(path_type=Path), default=None,
              help="Save the percentile chart to this image file")
@click.option("--no-paths", is_flag=True, help="Omit per-path records from the JSON output")
@click.pass_context
def simulate(ctx: click.Context, view: Optional[str], output: Optional[Path],
             plot: Optional[Path], no_paths: bool, **kw) -> None:
    """
    Run the Monte Carlo projection.

    Example:
        firesim simulate --seed 42 --view nominal
    """
    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    from .serialization import save_bands_csv, save_results, to_query_string
    from .simulation import SimulationEngine
    from .utils import format_currency

    params, config, query_view = _build_run(ctx, kw)
    view = view or query_view or ctx.obj["settings"].default_view

    if not quiet:
        console.print(f"[bold]Running {config.n_paths:,} paths over {params.years} years "
                      f"(seed {config.seed})...[/bold]")

    result = SimulationEngine(params, config).run()
    bands = result.bands(view)
    total_in = params.starting_assets + result.results[0].total_contributions

    from rich.table import Table

    table = Table(title=f"Final Balance ({view})", show_header=True)
    table.add_column("Percentile", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for rank in sorted(bands, reverse=True):
        label = f"{rank:g}p" + (" (median)" if rank == 50 else "")
        table.add_row(label, format_currency(bands[rank][-1]))
    table.add_row("", "")
    table.add_row("Starting assets + contributions", format_currency(total_in))
    table.add_row("Paths", f"{result.n_paths:,}")
    table.add_row("Seed", str(result.seed))
    console.print(table)

    query = to_query_string(params, seed=result.seed, view=view)
    click.echo(f"Share: ?{query}")

    if output:
        output.mkdir(parents=True, exist_ok=True)
        result_file = output / "simulation_result.json"
        save_results(result, result_file, include_paths=not no_paths)
        bands_file = output / f"percentiles_{view}.csv"
        save_bands_csv(bands, bands_file)
        if not quiet:
            click.echo(f"Results saved to {result_file}")
            click.echo(f"Bands saved to {bands_file}")

    if plot:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from .plotting import plot_percentile_bands

        plot.parent.mkdir(parents=True, exist_ok=True)
        fig, _ = plot_percentile_bands(bands, params.years, view=view,
                                       save_path=str(plot), return_fig_ax=True)
        plt.close(fig)
        if not quiet:
            click.echo(f"Chart saved to {plot}")


@main.command()
@_param_options
@click.option("--ranks", "-r", type=str, default="10,50,90",
              help="Final-balance ranks of the paths to show (default: 10,50,90)")
@click.option("--plot", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Save one diagnostics chart per rank into this directory")
@click.pass_context
def diagnostics(ctx: click.Context, ranks: str, plot: Optional[Path], **kw) -> None:
    """
    Show representative paths year by year.

    Paths are ranked by nominal final balance; for each requested rank the
    nearest path is printed with its returns, inflation and balances, plus
    the realized geometric means (which equal the targets, up to the
    inflation floor).

    Example:
        firesim diagnostics --seed 42 --ranks 10,50,90
    """
    console = ctx.obj["console"]

    from rich.table import Table

    from .exceptions import FireSimError
    from .percentiles import representative_paths
    from .simulation import run_monte_carlo
    from .utils import format_currency, format_percent

    rank_values = _parse_ranks(ranks)
    params, config, _ = _build_run(ctx, kw)
    try:
        results = run_monte_carlo(
            params,
            config.n_paths,
            base_seed=config.seed,
            return_volatility=config.return_volatility,
            inflation_volatility=config.inflation_volatility,
            max_workers=config.max_workers,
        )
        chosen = representative_paths(results, rank_values)
    except FireSimError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for rank, path in chosen.items():
        table = Table(
            title=(f"{rank:g}p Scenario (Final: {format_currency(path.final_balance)} nominal, "
                   f"{format_currency(path.final_real_balance)} real)"),
            show_header=True,
        )
        table.add_column("Year", style="cyan", no_wrap=True)
        table.add_column("Return", justify="right")
        table.add_column("Inflation", justify="right")
        table.add_column("Contribution", justify="right")
        table.add_column("Nominal", justify="right")
        table.add_column("Real", justify="right")
        for p in path.periods:
            style = "red" if p.return_rate < 0 else "green"
            table.add_row(
                str(p.period),
                f"[{style}]{format_percent(p.return_rate)}[/{style}]",
                format_percent(p.inflation_rate),
                format_currency(p.contribution),
                format_currency(p.ending_balance),
                format_currency(p.real_ending_balance),
            )
        table.add_row(
            "Geo Mean",
            format_percent(path.geometric_mean_return(), 2),
            format_percent(path.geometric_mean_inflation(), 2),
            "", "", "",
        )
        console.print(table)

    if plot:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from .plotting import plot_path_diagnostics

        plot.mkdir(parents=True, exist_ok=True)
        for rank, path in chosen.items():
            chart = plot / f"path_p{rank:g}.png"
            fig, _ = plot_path_diagnostics(path, label=f"{rank:g}p", save_path=str(chart),
                                           return_fig_ax=True)
            plt.close(fig)
            if not ctx.obj["quiet"]:
                click.echo(f"Chart saved to {chart}")

    click.echo(f"Seed: {config.seed}")


@main.group()
def url() -> None:
    """
    Shareable query-string commands.

    Encode a scenario into a query string, or decode one back.
    """
    pass


@url.command("encode")
@_param_options
@click.option("--view", type=click.Choice(["real", "nominal"]), default="real")
@click.pass_context
def url_encode(ctx: click.Context, view: str, **kw) -> None:
    """
    Print the query string for a scenario.

    Example:
        firesim url encode --annual-return 0.06 --seed 7
    """
    from .serialization import to_query_string

    if kw.get("seed") is None and not kw.get("query"):
        kw["seed"] = default_seed()
    params, config, _ = _build_run(ctx, kw)
    click.echo(to_query_string(params, seed=config.seed, view=view))


@url.command("decode")
@click.argument("query", type=str)
@click.pass_context
def url_decode(ctx: click.Context, query: str) -> None:
    """
    Decode a query string (or URL) and print it as JSON.

    Example:
        firesim url decode "?annualReturn=0.06&seed=7&view=nominal"
    """
    from .exceptions import FireSimError
    from .serialization import from_query_string, params_to_dict

    try:
        state = from_query_string(query)
    except FireSimError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(
        {"params": params_to_dict(state.params), "seed": state.seed, "view": state.view},
        indent=2,
    ))


@main.group()
def config() -> None:
    """
    Parameter file commands.

    Create, validate and display scenario parameter files.
    """
    pass


@config.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.pass_context
def config_create(ctx: click.Context, output_file: Path) -> None:
    """
    Write a parameter file with the default scenario.

    Example:
        firesim config create scenario.json
    """
    from .config import SimulationParamsConfig
    from .serialization import save_params

    save_params(SimulationParamsConfig().to_params(), output_file)
    if not ctx.obj["quiet"]:
        click.echo(f"Created parameter file: {output_file}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, config_file: Path) -> None:
    """
    Validate a parameter file.

    Example:
        firesim config validate scenario.json
    """
    from .exceptions import FireSimError
    from .serialization import load_params

    try:
        params = load_params(config_file)
    except (FireSimError, json.JSONDecodeError) as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)

    click.echo("Configuration is valid")
    click.echo(f"Years: {params.years}")


@config.command("show")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def config_show(ctx: click.Context, config_file: Path, format: str) -> None:
    """
    Display a parameter file.

    Example:
        firesim config show scenario.json --format table
    """
    from .exceptions import FireSimError
    from .serialization import load_params, params_to_dict
    from .utils import format_currency, format_percent

    try:
        params = load_params(config_file)
    except (FireSimError, json.JSONDecodeError) as e:
        click.echo(f"Error loading parameter file: {e}", err=True)
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(params_to_dict(params), indent=2))
        return

    from rich.table import Table

    table = Table(title="Scenario Parameters")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Starting assets", format_currency(params.starting_assets))
    table.add_row("Annual return", format_percent(params.annual_return))
    table.add_row("Initial contribution", format_currency(params.initial_contribution))
    table.add_row("Contribution growth", format_percent(params.contribution_growth_rate))
    table.add_row("Inflation", format_percent(params.inflation_rate))
    table.add_row("Years", str(params.years))
    ctx.obj["console"].print(table)


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.
    """
    from rich.panel import Panel

    info_lines = [
        f"FireSim Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]

    dependencies = ["numpy", "pandas", "matplotlib", "pydantic", "click", "rich"]
    for module in dependencies:
        try:
            mod = __import__(module)
            version = getattr(mod, "__version__", "installed")
            info_lines.append(f"{module}: {version}")
        except ImportError:
            info_lines.append(f"{module}: not installed")

    ctx.obj["console"].print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
