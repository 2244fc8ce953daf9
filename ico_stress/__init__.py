"""
ICO stress harness.

Drives a fixed ICO workflow against an applogic service and a peatio
ledger: configure the offering, create and fund synthetic traders, fire
concurrent purchases, then report throughput and latency.
"""

__version__ = "0.1.0"
