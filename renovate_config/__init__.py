"""renovate-config: shared renovate ruleset and its end-to-end test harness."""

__version__ = "0.1.0"
