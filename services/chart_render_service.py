from typing import Optional
import io
import base64
import logging
import warnings

import numpy as np
import pandas as pd
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from models.chat_models import ChartSpec

warnings.filterwarnings("ignore", category=UserWarning)

logger = logging.getLogger(__name__)

# Black, grays and minimal accents
COLORS = ["#18181b", "#52525b", "#a1a1aa", "#d4d4d8", "#27272a", "#71717a"]


def _chart_frame(chart: ChartSpec) -> pd.DataFrame:
    return pd.DataFrame({
        "name": [p.name for p in chart.data],
        "value": [p.value for p in chart.data],
    })


def render_chart(chart: ChartSpec) -> Optional[str]:
    """
    Draw a chart directive with matplotlib/seaborn.
    Returns the PNG as base64, or None if the data cannot be drawn.
    """
    df = _chart_frame(chart)
    if df.empty:
        logger.warning("Chart %r has no data points", chart.title)
        return None

    fig, ax = plt.subplots(figsize=(8, 5))
    try:
        positions = np.arange(len(df))
        y_label = chart.y_axis_label or "Value"

        if chart.type == "bar":
            palette = [COLORS[i % len(COLORS)] for i in range(len(df))]
            sns.barplot(data=df, x="name", y="value", hue="name", palette=palette, legend=False, ax=ax)

        elif chart.type == "line":
            ax.plot(positions, df["value"], color=COLORS[0], linewidth=2, marker="o")
            ax.set_xticks(positions)
            ax.set_xticklabels(df["name"])

        elif chart.type == "area":
            ax.fill_between(positions, df["value"], color=COLORS[0], alpha=0.3)
            ax.plot(positions, df["value"], color=COLORS[0], linewidth=2)
            ax.set_xticks(positions)
            ax.set_xticklabels(df["name"])

        elif chart.type == "pie":
            colors = [COLORS[i % len(COLORS)] for i in range(len(df))]
            ax.pie(df["value"], labels=df["name"], colors=colors, autopct="%1.0f%%")
            ax.axis("equal")

        if chart.type != "pie":
            ax.set_xlabel(chart.x_axis_label or "")
            ax.set_ylabel(y_label)
            ax.grid(axis="y", linestyle="--", color="#e4e4e7")
            sns.despine(ax=ax)

        ax.set_title(chart.title)

        buffer = io.BytesIO()
        fig.tight_layout()
        fig.savefig(buffer, format="png")
        buffer.seek(0)
        return base64.b64encode(buffer.read()).decode("utf-8")

    except Exception as e:
        logger.warning("Failed to render %s chart %r: %s", chart.type, chart.title, e)
        return None
    finally:
        plt.close(fig)
