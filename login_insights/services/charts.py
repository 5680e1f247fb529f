from __future__ import annotations

import io
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt

TARGETS_CHART_TITLE = "Number of Logins Per Domain"
USERS_CHART_TITLE = "Number of Logins Per User"

_BAR_COLOR = "#04969E"
_TEXT_COLOR = "#184163"


def save_figure(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def _draw_ranked_counts(ranked: Sequence[Tuple[str, Any]], title: str) -> None:
    labels: List[str] = [key for key, _ in ranked]
    counts: List[int] = [bucket.count for _, bucket in ranked]

    plt.figure(figsize=(max(6.0, 0.35 * len(labels)), 5))
    plt.bar(labels, counts, color=_BAR_COLOR)
    plt.xticks(rotation=45, ha="right", color=_TEXT_COLOR)
    plt.ylim(0, counts[0])
    plt.title(title, color=_TEXT_COLOR)
    plt.ylabel("Login attempts")


def plot_ranked_counts(
    ranked: Sequence[Tuple[str, Any]], title: str, output_path: Path
) -> Optional[Path]:
    """Bar chart of a ranked aggregate, tallest bar first. None when empty."""
    if not ranked:
        return None
    _draw_ranked_counts(ranked, title)
    return save_figure(output_path)


def render_ranked_counts_png(ranked: Sequence[Tuple[str, Any]], title: str) -> Optional[bytes]:
    if not ranked:
        return None
    _draw_ranked_counts(ranked, title)
    buffer = io.BytesIO()
    plt.tight_layout()
    plt.savefig(buffer, format="png")
    plt.close()
    return buffer.getvalue()
