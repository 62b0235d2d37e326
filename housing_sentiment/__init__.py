"""
Housing Price and Consumer Sentiment Analysis Package

Cointegration analysis of the Case-Shiller home price index and the
University of Michigan consumer sentiment index, with a Vector
Error-Correction Model, impulse responses and variance decomposition.
"""

__version__ = "1.0.0"
