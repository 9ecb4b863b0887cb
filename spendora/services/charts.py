"""
Chart service for net worth and portfolio visualizations.

Provides functionality for:
- Net worth trend over recorded snapshots
- Asset allocation by category
"""

import io
import logging
from typing import Optional

import matplotlib
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.ticker import FuncFormatter

from spendora.config import (
    CHART_DPI,
    CHART_FORMAT,
    CHART_HEIGHT,
    CHART_WIDTH,
    NET_WORTH_TREND_POINTS,
)
from spendora.db.models import Asset, NetWorthSnapshot

from .analytics import portfolio_summary

# Render off-screen; there is no display in the backend process
matplotlib.use("Agg")

logger = logging.getLogger(__name__)

COLORS = {
    "assets": "#2ecc71",  # Green
    "liabilities": "#e74c3c",  # Red
    "net_worth": "#3498db",  # Blue
}


def _thousands(x, _pos):
    return f"{x:,.0f}"


class ChartService:
    """Service for rendering finance charts as PNG images."""

    def __init__(self):
        try:
            sns.set_theme(style="darkgrid")
        except Exception as e:
            logger.warning(f"Failed to set seaborn theme: {e}")

    def _empty_chart(self, message: str) -> io.BytesIO:
        fig, ax = plt.subplots(figsize=(10, 6))
        try:
            ax.text(0.5, 0.5, message, ha="center", va="center", fontsize=14)
            ax.set_xlim(0, 1)
            ax.set_ylim(0, 1)
            return self._save(fig)
        finally:
            plt.close(fig)

    def _save(self, fig) -> io.BytesIO:
        buf = io.BytesIO()
        fig.savefig(buf, format=CHART_FORMAT, dpi=CHART_DPI, bbox_inches="tight")
        buf.seek(0)
        return buf

    def net_worth_trend_chart(
        self,
        history: list[NetWorthSnapshot],
        points: Optional[int] = None,
    ) -> io.BytesIO:
        """
        Generate a line chart of assets, liabilities and net worth over time.

        Args:
            history: Snapshots, newest first (as the store returns them)
            points: Number of most recent snapshots to plot

        Returns:
            BytesIO buffer containing the PNG image
        """
        points = points or NET_WORTH_TREND_POINTS
        if not history:
            logger.debug("Generated empty net worth chart")
            return self._empty_chart("No net worth snapshots recorded")

        recent = list(reversed(history[:points]))
        df = pd.DataFrame(
            {
                "Date": pd.to_datetime([s.date[:10] for s in recent]),
                "Assets": [s.total_assets for s in recent],
                "Liabilities": [s.total_liabilities for s in recent],
                "Net Worth": [s.net_worth for s in recent],
            }
        )

        fig = None
        try:
            fig, ax = plt.subplots(figsize=(CHART_WIDTH, CHART_HEIGHT))

            ax.fill_between(
                df["Date"],
                0,
                df["Net Worth"],
                alpha=0.2,
                color=COLORS["net_worth"],
                label="_nolegend_",
            )
            for column, color_key in (
                ("Net Worth", "net_worth"),
                ("Assets", "assets"),
                ("Liabilities", "liabilities"),
            ):
                ax.plot(
                    df["Date"],
                    df[column],
                    color=COLORS[color_key],
                    linewidth=2.5 if column == "Net Worth" else 1.5,
                    linestyle="-" if column == "Net Worth" else "--",
                    marker="o",
                    markersize=4,
                    label=column,
                )

            ax.axhline(y=0, color="red", linestyle="-", linewidth=1, alpha=0.7)
            ax.set_title("Net Worth Trend", fontsize=14, fontweight="bold")
            ax.set_xlabel("Date", fontsize=11)
            ax.set_ylabel("Amount", fontsize=11)
            ax.legend(loc="upper left")
            ax.tick_params(axis="x", rotation=45)
            ax.yaxis.set_major_formatter(FuncFormatter(_thousands))

            plt.tight_layout()
            buf = self._save(fig)

            logger.debug(f"Generated net worth chart with {len(df)} points")
            return buf
        except Exception as e:
            logger.error(f"Error generating net worth chart: {e}", exc_info=True)
            raise
        finally:
            if fig is not None:
                plt.close(fig)

    def allocation_chart(self, assets: list[Asset]) -> io.BytesIO:
        """
        Generate a horizontal bar chart of current value per asset category.

        Args:
            assets: Assets to group

        Returns:
            BytesIO buffer containing the PNG image
        """
        summary = portfolio_summary(assets)
        if not summary.allocation:
            logger.debug("Generated empty allocation chart")
            return self._empty_chart("No assets recorded")

        df = (
            pd.DataFrame(
                {
                    "Category": list(summary.allocation),
                    "Value": list(summary.allocation.values()),
                    "Share": [summary.allocation_percent[c] for c in summary.allocation],
                }
            )
            .sort_values("Value", ascending=False)
            .reset_index(drop=True)
        )

        fig = None
        try:
            fig, ax = plt.subplots(figsize=(CHART_WIDTH, CHART_HEIGHT * 0.75))
            sns.barplot(data=df, x="Value", y="Category", ax=ax, color=COLORS["assets"])

            for idx, row in df.iterrows():
                ax.text(
                    row["Value"],
                    idx,
                    f" {row['Share']:.1f}%",
                    va="center",
                    fontsize=10,
                )

            ax.set_title(
                f"Asset Allocation (total {summary.total_current:,.0f})",
                fontsize=14,
                fontweight="bold",
            )
            ax.set_xlabel("Current Value", fontsize=11)
            ax.set_ylabel("")
            ax.xaxis.set_major_formatter(FuncFormatter(_thousands))

            plt.tight_layout()
            buf = self._save(fig)

            logger.debug(f"Generated allocation chart with {len(df)} categories")
            return buf
        except Exception as e:
            logger.error(f"Error generating allocation chart: {e}", exc_info=True)
            raise
        finally:
            if fig is not None:
                plt.close(fig)
