from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np

from lighthouse_decoder.analysis.readings import ReadingsResult


def _get_pyplot():
    """Import pyplot lazily (backend must already be configured)."""
    import matplotlib.pyplot as plt  # late import by design
    return plt


def plot_readings(result: ReadingsResult, *, ax=None, title: Optional[str] = None):
    """Plot x and y angle-ticks of every sensor against the reading epoch.

    x readings are solid lines, y readings dashed, one color per sensor.
    Returns the Axes used.
    """
    plt = _get_pyplot()
    if ax is None:
        fig = plt.figure(figsize=(10.0, 4.8))
        ax = fig.add_subplot(1, 1, 1)

    for sensor_id in sorted(result.readings):
        a = result.readings[sensor_id]
        t = np.asarray(a.t, dtype=float)
        line, = ax.plot(t, np.asarray(a.x, dtype=float), label=f"s{sensor_id} x")
        ax.plot(t, np.asarray(a.y, dtype=float), label=f"s{sensor_id} y", color=line.get_color(), linestyle="--")

    ax.set_xlabel("epoch (ticks)")
    ax.set_ylabel("angle (ticks)")
    ax.grid(True)
    ax.set_title(title or f"channel {result.channel.value} angles")
    if result.readings:
        ax.legend(loc="best", fontsize="small", ncol=2)
    return ax


def save_readings_plot(result: ReadingsResult, path: str | Path) -> Path:
    plt = _get_pyplot()
    ax = plot_readings(result)
    fig = ax.figure
    p = Path(path)
    fig.savefig(p)
    plt.close(fig)
    return p
