#!/usr/bin/env python3
"""
Script to run the complete house price / consumer sentiment analysis pipeline.
"""

import sys
import logging
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from housing_sentiment.config import AnalysisSettings
from housing_sentiment.pipeline import run_complete_analysis
from housing_sentiment.report import write_html_report

settings = AnalysisSettings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler("analysis.log"),
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


def main():
    """Run the complete analysis pipeline."""
    try:
        logger.info("Starting house price / consumer sentiment analysis...")

        results = run_complete_analysis(settings)
        path = write_html_report(results)

        summary = results.cointegration.summary(settings.confidence, settings.borderline_margin)
        logger.info("Analysis completed successfully!")
        logger.info(f"  Lag order ({settings.lag_criterion.upper()}): {results.lag_selection.selected}")
        logger.info(f"  Cointegration residual KPSS p-value: {summary['kpss_p_value']:.4f}")
        logger.info(f"  Error-correcting equations: {results.vecm.responsive_variables(settings.confidence)}")
        logger.info(f"  Report: {path}")

        return 0

    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        return 1


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
