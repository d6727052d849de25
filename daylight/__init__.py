"""
Daylight - cross-venue prediction market spread monitor.

Matches Kalshi and Polymarket instruments by title, tracks price spreads
between matched pairs as opportunities, and keeps a short price history
per instrument.
"""

__version__ = "1.0.0"
