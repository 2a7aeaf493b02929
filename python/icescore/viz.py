"""Visualization helpers for scored frames.

Requires `matplotlib` (install with `icescore[viz]`); it is imported lazily so
the scoring engine does not depend on it.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from .matcher import FrameResult
from .types import BoundingBox, FrameRecord


GT_COLOR = "cyan"
MATCHED_COLOR = "lime"
LEFTOVER_COLOR = "red"


def _load_matplotlib(out: str | Path | None):
    import matplotlib

    if out is not None:
        matplotlib.use("Agg")

    import matplotlib.pyplot as plt

    return plt


def _to_image_array(image: np.ndarray | str | Path, plt) -> np.ndarray:
    if isinstance(image, np.ndarray):
        return image
    return plt.imread(str(Path(image)))


def _draw_box(ax, bbox: BoundingBox, color: str, *, alpha: float, linestyle: str = "-") -> None:
    from matplotlib.patches import Rectangle

    ax.add_patch(
        Rectangle(
            (bbox.xtl, bbox.ytl),
            bbox.width,
            bbox.height,
            fill=False,
            edgecolor=color,
            linewidth=1.0,
            linestyle=linestyle,
            alpha=alpha,
        )
    )


def _draw_label(ax, x: float, y: float, text: str) -> None:
    import matplotlib.patheffects as pe

    ax.text(
        x,
        y - 2.0,
        text,
        fontsize=6,
        color="white",
        ha="left",
        va="bottom",
        path_effects=[pe.Stroke(linewidth=2.5, foreground="black"), pe.Normal()],
    )


def plot_frame(
    *,
    image: np.ndarray | str | Path,
    frame: FrameRecord,
    result: FrameResult,
    out: str | Path | None = None,
    alpha: float = 0.8,
    show_labels: bool = True,
) -> None:
    """Render ground truth and scored detections over an image.

    Ground truth is dashed cyan, matched detections are green with their pair
    score, unmatched detections are red.

    Parameters
    ----------
    image:
        Path to image file or image array.
    frame:
        The frame that was scored.
    result:
        Matching result for `frame` from :func:`icescore.matcher.match_frame`.
    out:
        Optional output file path. If omitted, opens an interactive window.
    """

    plt = _load_matplotlib(out)
    image_arr = _to_image_array(image, plt)
    img_h, img_w = int(image_arr.shape[0]), int(image_arr.shape[1])

    render_dpi = 100
    fig = plt.figure(
        figsize=(img_w / render_dpi, img_h / render_dpi),
        dpi=render_dpi,
        frameon=False,
    )
    ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
    if image_arr.ndim == 2:
        ax.imshow(image_arr, cmap="gray")
    else:
        ax.imshow(image_arr)
    ax.set_axis_off()

    for gt in frame.ground_truth:
        _draw_box(ax, gt.bbox, GT_COLOR, alpha=alpha, linestyle="--")

    for det_idx, det in enumerate(frame.detections):
        hit = result.hit_for_detection(det_idx)
        color = LEFTOVER_COLOR if hit is None else MATCHED_COLOR
        _draw_box(ax, det.bbox, color, alpha=alpha)
        if show_labels:
            label = f"{det.sign_class}" if hit is None else f"{det.sign_class} ({hit.score:.2f})"
            _draw_label(ax, det.bbox.xtl, det.bbox.ytl, label)

    ax.set_xlim(0, img_w)
    ax.set_ylim(img_h, 0)
    ax.set_aspect("equal")

    if out is None:
        plt.show()
        return

    out_path = Path(out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=render_dpi, pad_inches=0)
    plt.close(fig)
