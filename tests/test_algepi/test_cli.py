import pytest
from click.testing import CliRunner

from algepi import cli as cli_module
from algepi.cli import cli
from algepi.examples import EXAMPLES


@pytest.fixture
def runs(monkeypatch):
    """
    Replace plotting and logging setup so CLI runs are quick and side-effect free.
    """
    calls = []
    monkeypatch.setattr(cli_module, "setup_logging", lambda verbose, log_path: None)
    for name, module in EXAMPLES.items():

        def _plot_outputs(model, params=None, methods=None, output_dir=None, name=name):
            calls.append((name, model, params, methods, output_dir))

        monkeypatch.setattr(module, "plot_outputs", _plot_outputs)

    return calls


def test_list_examples():
    result = CliRunner().invoke(cli, ["list"])
    assert result.exit_code == 0, result.output
    for name in EXAMPLES.keys():
        assert f"{name}:" in result.output


def test_run_example(runs, tmp_path):
    args = ["run", "sir", "--method", "ode", "--output-dir", str(tmp_path)]
    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 0, result.output
    [(name, model, params, methods, output_dir)] = runs
    assert name == "sir"
    assert model.compartments == ["S", "I", "R"]
    assert params.seed == 1234
    assert methods == ["ode"]
    assert output_dir == str(tmp_path)


def test_run_example_all_methods_with_seed(runs):
    result = CliRunner().invoke(cli, ["run", "seir", "--seed", "7"])
    assert result.exit_code == 0, result.output
    [(name, model, params, methods, output_dir)] = runs
    assert name == "seir"
    assert params.seed == 7
    assert methods == ["ode", "sde", "jump"]
    assert output_dir is None


def test_run_example_with_params_file(runs, tmp_path):
    params_path = tmp_path / "params.yml"
    params_path.write_text("rates:\n  recovery: 0.1\ntime:\n  end: 20\n")
    result = CliRunner().invoke(cli, ["run", "sir", "--params", str(params_path)])
    assert result.exit_code == 0, result.output
    [(_, model, params, _, _)] = runs
    assert params.rates == {"transmission": 0.005, "recovery": 0.1}
    assert model.times[-1] == 20


def test_run_unknown_example(runs):
    result = CliRunner().invoke(cli, ["run", "sis"])
    assert result.exit_code != 0
    assert not runs


def test_draw_diagrams(monkeypatch, tmp_path):
    drawn = []
    monkeypatch.setattr(
        cli_module,
        "create_wiring_diagram",
        lambda wiring, name, directory: drawn.append((name, wiring.boxes(), directory)),
    )
    monkeypatch.setattr(
        cli_module,
        "create_petri_diagram",
        lambda net, name, directory: drawn.append((name, net.transition_names, directory)),
    )
    result = CliRunner().invoke(cli, ["diagram", "sir", "--output-dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert drawn == [
        ("sir-wiring", ["transmission", "recovery"], str(tmp_path)),
        ("sir-petri", ["transmission", "recovery"], str(tmp_path)),
    ]
