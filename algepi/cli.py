"""
Runs the example models

You can access this script from your CLI by running:

    python -m algepi --help

"""
import logging
import logging.config
import os
import warnings
from typing import Optional

import click
import matplotlib

# Use non-TK matplotlib backend so that plots can be saved without a display.
matplotlib.use("Agg")

# Ignore noisy deprecation warnings.
warnings.simplefilter(action="ignore", category=FutureWarning)

from algepi.examples import EXAMPLES
from algepi.examples.utils import SIMULATIONS
from algepi.flowchart import create_petri_diagram, create_wiring_diagram
from algepi.wiring import WiringDiagram

logger = logging.getLogger(__name__)

METHOD_CHOICES = [*SIMULATIONS, "all"]


def setup_logging(verbose: bool, log_path: Optional[str] = None):
    """
    Configure the root logger to write to the console, and optionally to a file.
    """
    log_format = "%(asctime)s %(name)s %(levelname)s %(message)s"
    level = "DEBUG" if verbose else "INFO"
    root_logger = {"level": level, "handlers": ["stream"]}
    handlers = {
        "stream": {
            "level": level,
            "class": "logging.StreamHandler",
            "formatter": "app",
        }
    }
    if log_path:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
        root_logger["handlers"].append("file")
        handlers["file"] = {
            "level": "DEBUG",
            "class": "logging.FileHandler",
            "filename": log_path,
            "formatter": "app",
            "encoding": "utf-8",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "root": root_logger,
            "handlers": handlers,
            "formatters": {
                "app": {
                    "format": log_format,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
        }
    )
    # Numba is very chatty at debug level.
    logging.getLogger("numba").setLevel(logging.WARNING)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


@click.group()
def cli():
    """
    Build and simulate compartmental models composed from Petri net building blocks.
    """


@cli.command("list")
def list_examples():
    """List the available example models."""
    for name, module in EXAMPLES.items():
        summary = (module.__doc__ or "").strip().split("\n")[0]
        click.echo(f"{name}: {summary}")


@cli.command("run")
@click.argument("example", type=click.Choice(list(EXAMPLES.keys())))
@click.option("--method", type=click.Choice(METHOD_CHOICES), default="all")
@click.option("--params", "params_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--seed", type=int)
@click.option("--output-dir", type=click.Path(file_okay=False))
@click.option("--log-file", type=click.Path(dir_okay=False))
@click.option("--verbose", is_flag=True)
def run_example(example, method, params_path, seed, output_dir, log_file, verbose):
    """Simulate an example model and plot the results."""
    setup_logging(verbose, log_file)
    module = EXAMPLES[example]
    params = module.base_params
    if params_path:
        params = params.update(params_path)
    if seed is not None:
        params = params.update_values({"seed": seed})

    built_params = params.build()
    methods = SIMULATIONS if method == "all" else [method]
    logger.info("Running %s example with methods %s", example, methods)
    model = module.build_model(built_params)
    module.plot_outputs(model, built_params, methods=methods, output_dir=output_dir)


@cli.command("diagram")
@click.argument("example", type=click.Choice(list(EXAMPLES.keys())))
@click.option("--output-dir", type=click.Path(file_okay=False), default=".")
def draw_diagrams(example, output_dir):
    """Draw the wiring diagram and Petri net of an example model."""
    module = EXAMPLES[example]
    expr = module.build_expression()
    model = module.build_model()
    create_wiring_diagram(WiringDiagram(expr), name=f"{example}-wiring", directory=output_dir)
    create_petri_diagram(model.net, name=f"{example}-petri", directory=output_dir)
    click.echo(f"Saved {example} diagrams to {output_dir}")
