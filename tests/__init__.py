"""
Tests Module
============

Unit and integration tests for the portfolio analytics engine.

Test Categories:
- unit/test_types.py: Input validation and value objects
- unit/test_trades.py, unit/test_timeseries.py: Trade and equity curve metrics
- unit/test_risk.py: VaR, correlation, beta, concentration
- unit/test_benchmark.py, unit/test_attribution.py: Comparison and attribution
- unit/test_report.py, unit/test_engine.py: Report assembly and batch runs
- integration/test_pipeline.py: End-to-end analysis
"""
