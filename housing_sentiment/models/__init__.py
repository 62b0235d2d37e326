"""
Econometric models for the house price / sentiment analysis.

This package contains implementations of:
- FRED data acquisition and panel reshaping
- Seasonal adjustment
- Unit-root testing
- Engle-Granger and Johansen cointegration tests
- Vector error-correction model
- Impulse responses and variance decomposition
"""
