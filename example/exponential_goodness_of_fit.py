"""
Exponential Arrivals: Generate and Validate

OVERVIEW:
    Inter-arrival times in a queueing exercise are modelled as Exponential
    with rate 2 arrivals per minute. This example generates a seeded sample,
    builds its frequency table and checks the fit with both chi-square and
    Kolmogorov-Smirnov tests.

PROCESS:
    1. Generate: 10,000 variates from a LinearCongruentialGenerator seeded
       with 42, via the inverse-CDF transform.
    2. Tabulate: Sturges bins, merged until each expects 5 observations.
    3. Test: chi-square and KS at a 5% significance level.
    4. Show: the frequency table and a bar chart of observed vs expected.
"""

import logging

import simrng
from simrng.log_cfg import LogConfig

LogConfig(enabled=True, console_level=logging.DEBUG, file_path=None)

spec = simrng.make("exponential", {"lambda": 2.0})
report = simrng.run(42, spec, 10000, significance_level=0.05)

print(report.table.to_frame())
for name, result in report.results.items():
    print(f"{name}: statistic={result.statistic:.4f} critical={result.critical_value:.4f} -> {result.verdict}")

report.table.plot()
