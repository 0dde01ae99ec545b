import logging
from typing import Dict, Optional

import numpy as np
from matplotlib import pyplot

logger = logging.getLogger(__name__)


def plot_timeseries(
    title: str,
    times: np.ndarray,
    values: Dict[str, np.ndarray],
    step: bool = False,
    path: Optional[str] = None,
):
    """
    Plot one or more timeseries on a single set of axes.
    Jump process results are best shown as step functions, with ``step=True``.
    The figure is saved to ``path`` if supplied, otherwise it is shown.
    """
    pyplot.style.use("ggplot")
    fig = pyplot.figure()
    ax = fig.add_subplot(1, 1, 1)
    ax.set_title(title)
    ax.set_xlabel("times")
    legend = []
    for plot_name, plot_vals in values.items():
        if step:
            ax.step(times, plot_vals, where="post")
        else:
            ax.plot(times, plot_vals)
        legend.append(plot_name)

    ax.legend(legend)
    if path:
        fig.savefig(path)
        logger.info("Saved plot to %s", path)
        pyplot.close(fig)
    else:
        pyplot.show()
