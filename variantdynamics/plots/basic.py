import matplotlib.pyplot as plt

from variantdynamics.config import Columns, Lineages
from variantdynamics.utils.lineages import sort_lineages


def lineage_order(lineages, other=Lineages.OTHER):
    """Sorts lineages by their pango name, `other` is placed last."""
    lineages = list(lineages)
    ordered, rest = sort_lineages([lin for lin in lineages if lin != other])
    return ordered + sorted(rest) + ([other] if other in lineages else [])


def _stacked_area(
    freq,
    value_col,
    date_col=Columns.DATE,
    group_col=Columns.LINEAGE,
    colors=None,
    ax=None,
):
    if ax is None:
        ax = plt.gca()

    table = freq.pivot_table(
        index=date_col,
        columns=group_col,
        values=value_col,
        aggfunc="sum",
        fill_value=0,
    )
    order = lineage_order(table.columns)
    colors = Lineages.COLORS if colors is None else colors

    ax.stackplot(
        table.index,
        *[table[lin].to_numpy() for lin in order],
        labels=order,
        colors=[colors.get(lin, f"C{i%10}") for i, lin in enumerate(order)],
    )
    ax.margins(x=0)
    ax.legend(title="Lineage", loc="upper left", fontsize="small")
    ax.tick_params(axis="x", labelrotation=45)
    return ax


def plot_lineage_counts(freq, colors=None, ax=None, **kwargs):
    ax = _stacked_area(freq, Columns.LINEAGE_COUNT, colors=colors, ax=ax, **kwargs)
    ax.set_title("Total Counts of Major Lineages Over Time")
    ax.set_xlabel("Collection Date")
    ax.set_ylabel("Total Count")
    return ax


def plot_lineage_frequencies(freq, colors=None, ax=None, **kwargs):
    ax = _stacked_area(freq, Columns.FREQUENCY, colors=colors, ax=ax, **kwargs)
    ax.set_ylim(0, 1)
    ax.set_title("Frequency of Major Variants Over Time")
    ax.set_xlabel("Collection Date")
    ax.set_ylabel("Proportion")
    return ax


def plot_frequency_comparison(comparison, lineage, colors=None, ax=None):
    """Plots the trajectory of lineage for each source in comparison."""
    if ax is None:
        ax = plt.gca()

    for i, (source, df) in enumerate(comparison.groupby("source", sort=True)):
        ax.plot(
            df[Columns.DATE],
            df[Columns.FREQUENCY],
            c=f"C{i%10}" if colors is None else colors[source],
            label=source,
            linewidth=1.5,
        )

    ax.set_title(f"{lineage} Frequency Trajectory")
    ax.set_xlabel("Collection Date")
    ax.set_ylabel("Frequency")
    ax.legend(title="Dataset Source")
    ax.tick_params(axis="x", labelrotation=45)
    return ax


def plot_logistic_fit(series, fit, color="C0", ax=None):
    """
    Plots observed frequencies and the fitted logistic growth curve.

    :param series: observed frequencies indexed by date
    :param fit: LogisticFitResult
    """
    if ax is None:
        ax = plt.gca()

    ax.scatter(series.index, series.to_numpy(), c="k", s=12, alpha=0.7)
    if fit.converged:
        ax.plot(
            fit.predictions[Columns.DATE],
            fit.predictions["predicted_frequency"],
            c=color,
            linewidth=1.5,
        )
        ax.text(
            0.05,
            0.9,
            f"s = {fit.s:.4f}",
            color=color,
            transform=ax.transAxes,
        )
    else:
        ax.text(0.05, 0.9, "no estimate", color="k", transform=ax.transAxes)

    ax.set_title(f"Logistic Growth Fit for {fit.group}")
    ax.set_xlabel("Collection Date")
    ax.set_ylabel("Frequency")
    ax.tick_params(axis="x", labelrotation=45)
    return ax


def plot_regional_frequencies(regional, ax=None):
    if ax is None:
        ax = plt.gca()

    for i, (region, df) in enumerate(regional.groupby(Columns.REGION, sort=True)):
        ax.plot(
            df[Columns.DATE],
            df[Columns.FREQUENCY],
            marker=".",
            c=plt.cm.viridis(i / max(regional[Columns.REGION].nunique() - 1, 1)),
            label=region,
        )

    ax.set_title("Delta Variant Frequency Over Time (Weekly)")
    ax.set_xlabel("Collection Date")
    ax.set_ylabel("Frequency of Delta")
    ax.legend(title="Region", fontsize="small")
    ax.tick_params(axis="x", labelrotation=45)
    return ax


def plot_rt(rt, color="C1", ax=None, alpha=0.2):
    """Plots the mean Rt at the end of each window and its credible interval."""
    if ax is None:
        ax = plt.gca()

    ax.plot(rt["window_end"], rt["mean_r"], c=color)
    ax.fill_between(
        rt["window_end"], rt["lower"], rt["upper"], color=color, alpha=alpha
    )
    ax.axhline(1, color="k", linestyle=":", linewidth=0.5, alpha=0.8)
    ax.set_title("Time-varying Reproduction Number")
    ax.set_xlabel("Date")
    ax.set_ylabel("$R_t$")
    ax.tick_params(axis="x", labelrotation=45)
    return ax


def save_figure(plot_func, filename, *args, size=(8, 5), **kwargs):
    """Draws plot_func on a new figure and writes it to filename."""
    fig, ax = plt.subplots(figsize=size)
    plot_func(*args, ax=ax, **kwargs)
    fig.tight_layout()
    fig.savefig(filename)
    plt.close(fig)
    return filename
