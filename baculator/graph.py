"""
BAC-over-time graph. Produces image file or returns data for web/mobile.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from baculator.timeline import BACSample

LEGAL_LIMIT_BAC = 0.05

HISTORY_COLOR = "#2563eb"
LIMIT_COLOR = "#dc2626"
NOW_COLOR = "#10b981"


def curve_data(timeline: Sequence[BACSample]) -> List[Tuple[float, float]]:
    """(offset_hours, bac_percent) pairs for use in any frontend."""
    return [(s.offset_hours, s.bac_value) for s in timeline]


def split_at_now(timeline: Sequence[BACSample]) -> Tuple[List[Tuple[float, float]], List[Tuple[float, float]]]:
    """History and prediction as (hours_from_now, bac) pairs; both include now."""
    history = [(s.offset_from_now_hours, s.bac_value) for s in timeline if s.offset_from_now_hours <= 0]
    predicted = [(s.offset_from_now_hours, s.bac_value) for s in timeline if s.offset_from_now_hours >= 0]
    return history, predicted


def peak_sample(timeline: Sequence[BACSample]) -> Optional[BACSample]:
    """Highest sample, earliest on ties."""
    best = None
    for s in timeline:
        if best is None or s.bac_value > best.bac_value:
            best = s
    return best


def save_bac_graph(
    timeline: Sequence[BACSample],
    output_path: str = "bac_graph.png",
    legal_limit: float = LEGAL_LIMIT_BAC,
    title: str = "BAC over time",
) -> str:
    """
    Plot the timeline against hours from now and save it. History is solid,
    the prediction dashed, and the band above the legal limit is shaded.
    Returns path to saved file. Requires: pip install matplotlib
    """
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib is required for save_bac_graph. pip install matplotlib")

    history, predicted = split_at_now(timeline)
    fig, ax = plt.subplots(figsize=(10, 5))
    for points, style, label in ((history, "-", "BAC"), (predicted, "--", "Predicted")):
        if points:
            xs, ys = zip(*points)
            ax.plot(xs, ys, color=HISTORY_COLOR, linewidth=2, linestyle=style, label=label)

    top = max([s.bac_value for s in timeline] + [legal_limit]) * 1.15
    ax.axhspan(legal_limit, top, color=LIMIT_COLOR, alpha=0.08, label=f"Over limit ({legal_limit:.2f}%)")
    ax.axvline(x=0, color=NOW_COLOR, linewidth=1, label="Now")

    peak = peak_sample(timeline)
    if peak is not None and peak.bac_value > 0:
        ax.annotate(
            f"peak {peak.bac_value:.3f}% @ {peak.clock_time}",
            xy=(peak.offset_from_now_hours, peak.bac_value),
            xytext=(0, 10),
            textcoords="offset points",
            ha="center",
            fontsize=8,
        )

    ax.set_xlabel("Hours from now")
    ax.set_ylabel("BAC (%)")
    ax.set_title(title)
    ax.set_ylim(0, top)
    ax.legend(loc="upper right")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
