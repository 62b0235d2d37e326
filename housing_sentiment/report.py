"""
HTML Report Generator
=====================

Renders an AnalysisResults into one self-contained HTML file: narrative,
pandas tables and inline PNG figures.

Usage:
    from housing_sentiment.pipeline import run_complete_analysis
    from housing_sentiment.report import write_html_report

    results = run_complete_analysis()
    write_html_report(results, "results/housing_sentiment_report.html")
"""

import base64
import html
import io
from datetime import datetime
from pathlib import Path
from typing import List, Union
import logging

import matplotlib.pyplot as plt
import pandas as pd

from . import visualization
from .models.cointegration import johansen_rank
from .pipeline import AnalysisResults

logger = logging.getLogger(__name__)


# =============================================================================
# STYLES
# =============================================================================

CSS_STYLES = """
body {
    font-family: Georgia, 'Times New Roman', serif;
    color: #1f2933;
    line-height: 1.6;
    max-width: 1100px;
    margin: 0 auto;
    padding: 2rem;
}

h1 { font-size: 1.8rem; margin-bottom: 0.2rem; }
h2 { font-size: 1.3rem; border-bottom: 1px solid #d9e2ec; padding-bottom: 0.3rem; margin-top: 2.5rem; }

.meta { color: #627d98; font-size: 0.85rem; }

table.dataframe {
    border-collapse: collapse;
    font-family: 'SF Mono', 'Consolas', monospace;
    font-size: 0.85rem;
    margin: 1rem 0;
}

table.dataframe th, table.dataframe td {
    border: 1px solid #d9e2ec;
    padding: 0.3rem 0.6rem;
    text-align: right;
}

table.dataframe th { background: #f0f4f8; }

.callout {
    background: #fff8e1;
    border-left: 4px solid #f4a261;
    padding: 0.8rem 1rem;
    margin: 1rem 0;
}

figure { margin: 1.5rem 0; }
figure img { max-width: 100%; }
"""


# =============================================================================
# HELPERS
# =============================================================================

def _figure_to_html(fig, caption: str = "") -> str:
    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', dpi=110, bbox_inches='tight', facecolor='white')
    plt.close(fig)
    encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
    caption_html = f"<figcaption>{html.escape(caption)}</figcaption>" if caption else ""
    return f'<figure><img src="data:image/png;base64,{encoded}" alt="{html.escape(caption)}">{caption_html}</figure>'


def _table(df: pd.DataFrame, float_format: str = '{:.4f}') -> str:
    return df.to_html(float_format=float_format.format, border=0)


def _p(text: str) -> str:
    return f"<p>{text}</p>"


def _fmt_p(value: float) -> str:
    if value < 1e-4:
        return f"{value:.2e}"
    return f"{value:.4f}"


# =============================================================================
# SECTIONS
# =============================================================================

def _section_data(results: AnalysisResults) -> List[str]:
    s = results.settings
    panel = results.panel[[s.price_series, s.sentiment_series]]
    counts = results.observations.groupby('series_id')['date'].agg(['count', 'min', 'max'])

    return [
        "<h2>1. Data</h2>",
        _p(
            f"Monthly observations of <b>{s.price_series}</b> (house prices) and "
            f"<b>{s.sentiment_series}</b> (consumer sentiment) were requested from FRED for "
            f"{s.start_date:%Y-%m-%d} to {s.end_date:%Y-%m-%d}. After aligning both series "
            f"the panel holds {len(panel)} consecutive months, "
            f"{panel.index.min():%Y-%m} to {panel.index.max():%Y-%m}."
        ),
        _table(counts, '{}'),
        _table(panel.describe()),
        _figure_to_html(visualization.plot_series_overview(panel), "Raw series"),
    ]


def _section_seasonal(results: AnalysisResults) -> List[str]:
    decomposition = results.decomposition
    return [
        "<h2>2. Seasonal adjustment</h2>",
        _p(
            f"{results.settings.sentiment_series} is decomposed with a {decomposition.method.upper()} "
            f"{decomposition.model} decomposition (period {results.settings.seasonal_period}). "
            "The seasonally adjusted series replaces the raw index in every later step."
        ),
        _figure_to_html(visualization.plot_decomposition(decomposition), "Sentiment decomposition"),
    ]


def _section_unit_roots(results: AnalysisResults) -> List[str]:
    s = results.settings
    raw = results.raw_unit_roots['unit_roots']
    transformed = results.transformed_unit_roots['unit_roots']

    text = ", ".join(f"{name}: {int(count)}" for name, count in raw.items())
    text_t = ", ".join(f"{name}: {int(count)}" for name, count in transformed.items())

    capped = [
        name
        for table in (results.raw_unit_roots, results.transformed_unit_roots)
        for name, ok in table['stationary_after_d'].items()
        if not ok
    ]

    parts = [
        "<h2>3. Unit roots</h2>",
        _p(
            f"The number of unit roots is the number of first differences needed before the KPSS "
            f"test stops rejecting stationarity at {s.confidence:.0%} confidence "
            f"(capped at {s.max_diffs}). Raw series: {text}. ADF and Phillips-Perron results are "
            "listed for comparison; their null hypothesis is a unit root."
        ),
        _table(results.raw_unit_roots),
    ]
    if capped:
        parts.append(
            f'<div class="callout">KPSS still rejects stationarity for {html.escape(", ".join(capped))} '
            f'after {s.max_diffs} differences, so the reported count is a lower bound.</div>'
        )
    parts += [
        "<h2>4. Transformation</h2>",
        _p(
            f"House prices enter as {s.log_scale:g}&times;ln({s.price_series}); sentiment enters "
            f"seasonally adjusted. Unit roots after transformation: {text_t}."
        ),
        _table(results.transformed_unit_roots),
        _figure_to_html(visualization.plot_transformed_panel(results.model_panel), "Model variables"),
    ]
    return parts


def _section_cointegration(results: AnalysisResults) -> List[str]:
    s = results.settings
    coint = results.cointegration
    summary = coint.summary(s.confidence, s.borderline_margin)

    verdict = "does not reject" if summary['kpss_stationary'] else "rejects"
    parts = [
        "<h2>5. Cointegration</h2>",
        _p(
            f"A static regression of {results.sentiment_column} on {results.price_column} gives "
            f"intercept {summary['intercept']:.4f} and slope {summary['slope']:.4f} "
            f"(R&sup2; {summary['r_squared']:.3f}). The KPSS test on its residuals {verdict} "
            f"stationarity at {s.confidence:.0%} confidence: statistic "
            f"<b>{summary['kpss_statistic']:.4f}</b>, p-value <b>{_fmt_p(summary['kpss_p_value'])}</b>."
        ),
    ]

    if summary['borderline']:
        parts.append(
            f'<div class="callout">The residual p-value lies within {s.borderline_margin} of the '
            f'{s.alpha} cutoff. The result is borderline and should be read with the exact '
            'statistic above rather than as a clean pass or fail.</div>'
        )

    kpss_crit = pd.Series(summary['kpss_critical_values'], name='KPSS critical value').to_frame()
    tau = pd.DataFrame({
        'statistic': [summary['eg_tau_statistic']],
        'p_value': [summary['eg_tau_p_value']],
        **{f'crit {k}': [v] for k, v in summary['eg_tau_critical_values'].items()},
    }, index=['Engle-Granger tau (ADF)'])

    parts += [
        _table(kpss_crit),
        _p(
            "As cross-checks, the ADF-based Engle-Granger tau test (null: no cointegration) and the "
            "Johansen trace test are reported below."
        ),
        _table(tau),
        _p(f"The Johansen trace test points to cointegration rank {johansen_rank(results.johansen)} at 95% confidence."),
        _table(results.johansen),
        _figure_to_html(visualization.plot_cointegration_residuals(coint.residuals),
                        "Cointegrating regression residuals"),
    ]
    return parts


def _section_vecm(results: AnalysisResults) -> List[str]:
    s = results.settings
    lag = results.lag_selection
    vecm = results.vecm
    adjustment = vecm.adjustment_table(s.confidence)
    responsive = vecm.responsive_variables(s.confidence)

    if responsive:
        direction = (
            f"Only {', '.join(responsive)} adjusts significantly toward the long-run relation."
            if len(responsive) < len(vecm.names)
            else "Every equation adjusts significantly toward the long-run relation."
        )
    else:
        direction = "No equation adjusts significantly toward the long-run relation."

    return [
        "<h2>6. Lag selection</h2>",
        _p(
            f"Searching up to {lag.max_lag} lags, {lag.criterion.upper()} selects "
            f"<b>{lag.selected}</b> lagged difference(s)."
        ),
        _table(lag.table),
        "<h2>7. Vector error-correction model</h2>",
        _p(
            f"VECM with cointegration rank {vecm.coint_rank}, {vecm.k_ar_diff} lagged difference(s), "
            f"deterministic terms '{vecm.deterministic}', estimated by maximum likelihood on "
            f"{int(vecm.results.nobs)} observations."
        ),
        "<h3>Cointegrating vector</h3>",
        _table(vecm.cointegrating_vector()),
        "<h3>Adjustment coefficients</h3>",
        _p(direction),
        _table(adjustment),
        "<h3>Short-run dynamics</h3>",
        _table(vecm.short_run_table()),
        _table(vecm.deterministic_terms()),
    ]


def _section_post_estimation(results: AnalysisResults) -> List[str]:
    irf = results.impulse_responses
    fevd = results.variance_decomposition

    steps = sorted({0, min(6, fevd.horizon), min(12, fevd.horizon), fevd.horizon})
    fevd_tables = []
    for variable in fevd.names:
        fevd_tables.append(f"<h3>{html.escape(variable)}</h3>")
        fevd_tables.append(_table(fevd.to_frame(variable).loc[steps]))

    bands = (
        f"with {irf.confidence:.0%} bands from {irf.n_bootstrap} residual-bootstrap replicates"
        if irf.lower is not None else "without confidence bands"
    )

    significant = []
    if irf.lower is not None:
        for impulse in irf.names:
            for response in irf.names:
                steps = irf.excludes_zero(impulse, response)
                if steps.any():
                    significant.append(
                        f"{html.escape(impulse)} &rarr; {html.escape(response)}: "
                        f"{int(steps.sum())} of {irf.horizon + 1} steps, first at step {int(steps.idxmax())}"
                    )
    band_text = (
        "Responses whose band excludes zero: " + "; ".join(significant) + "."
        if significant else "No response band excludes zero at any step."
    )

    return [
        "<h2>8. Impulse responses</h2>",
        _p(f"Responses over {irf.horizon} months {bands}."),
        *([_p(band_text)] if irf.lower is not None else []),
        _figure_to_html(visualization.plot_impulse_responses(irf), "Impulse responses"),
        "<h2>9. Forecast error variance decomposition</h2>",
        _p(
            "Share of each variable's forecast error variance attributed to each orthogonalised "
            "shock. A strongly trending variable whose drift is not absorbed by the equilibrium "
            "term tends to be dominated by its own shocks at every horizon."
        ),
        *fevd_tables,
        _figure_to_html(visualization.plot_variance_decomposition(fevd), "Variance decomposition"),
        "<h2>10. Residual diagnostics</h2>",
        _table(results.diagnostics),
    ]


# =============================================================================
# MAIN GENERATOR
# =============================================================================

def render_html_report(results: AnalysisResults) -> str:
    """Render the full report as an HTML string."""
    s = results.settings
    body: List[str] = [
        "<h1>House Prices and Consumer Sentiment</h1>",
        f'<p class="meta">{s.price_series} vs {s.sentiment_series}, '
        f'generated {datetime.now():%Y-%m-%d %H:%M}</p>',
    ]
    body += _section_data(results)
    body += _section_seasonal(results)
    body += _section_unit_roots(results)
    body += _section_cointegration(results)
    body += _section_vecm(results)
    body += _section_post_estimation(results)

    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n<meta charset=\"utf-8\">\n"
        "<title>House Prices and Consumer Sentiment</title>\n"
        f"<style>{CSS_STYLES}</style>\n</head>\n<body>\n"
        + "\n".join(body)
        + "\n</body>\n</html>\n"
    )


def write_html_report(results: AnalysisResults, path: Union[str, Path, None] = None) -> Path:
    """Render the report and write it to ``path`` (defaults to the configured report path)."""
    path = Path(path or results.settings.report_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html_report(results), encoding='utf-8')
    logger.info(f"Report written to {path}")
    return path
