import numpy as np

from algepi.plotting import plot_timeseries


def test_plot_timeseries_saves_figure(tmp_path):
    path = tmp_path / "sir-ode.png"
    times = np.linspace(0, 10, 11)
    values = {"S": 1000 - times, "I": times}
    plot_timeseries("SIR ODE solution", times, values, path=str(path))
    assert path.exists()


def test_plot_timeseries_step(tmp_path):
    path = tmp_path / "sir-jump.png"
    times = np.linspace(0, 10, 11)
    values = {"S": np.floor(1000 - times / 2)}
    plot_timeseries("SIR jump process sample path", times, values, step=True, path=str(path))
    assert path.exists()
