from .basic import (
    plot_frequency_comparison,
    plot_lineage_counts,
    plot_lineage_frequencies,
    plot_logistic_fit,
    plot_regional_frequencies,
    plot_rt,
    save_figure,
)

__all__ = [
    "plot_lineage_counts",
    "plot_lineage_frequencies",
    "plot_frequency_comparison",
    "plot_logistic_fit",
    "plot_regional_frequencies",
    "plot_rt",
    "save_figure",
]
