"""simrng is a seeded pseudo-random variate generator with goodness-of-fit tests for simulation courses. It includes rng (base generators), dist (distribution specs), sampler, freq (frequency tables) and gof (chi-square and Kolmogorov-Smirnov tests) modules.
"""
from simrng.errors import *
from simrng.rng import LehmerGenerator, LinearCongruentialGenerator, make_generator
from simrng.dist import DISTRIBUTIONS, empirical, expon, gamma, make, norm, poisson, uniform
from simrng.sampler import Sample, draw, sample
from simrng.freq import Bin, FrequencyTable, tabulate
from simrng.gof import TestResult, chi_square_test, ks_test
from simrng.log_cfg import log_config, logger
from simrng.runner import build_frequency_table, generate_sample, run, run_chi_square_test, run_ks_test

__version__ = "1.0.0"
