from housing_sentiment.config import AnalysisSettings
from housing_sentiment.pipeline import run_complete_analysis as run_pipeline
from housing_sentiment.report import write_html_report


def run_complete_analysis(settings=None):
    settings = settings or AnalysisSettings()

    print("Running house price / consumer sentiment analysis...")
    results = run_pipeline(settings)

    print("\nWriting report...")
    path = write_html_report(results)
    print(f"Report: {path}")

    return results


if __name__ == "__main__":
    results = run_complete_analysis()
