"""Command line pass-through to :mod:`simrng.runner`.

Examples
--------
.. code-block:: console

    simrng sample --seed 12345 --kind uniform --param a=0 --param b=1 --count 5
    simrng chi2 --seed 7 --kind exponential --param lambda=2 --count 10000 --alpha 0.05
    simrng table --seed 7 --kind poisson --param lambda=3 --count 500
"""
from __future__ import annotations

import argparse
import json
from dataclasses import asdict
import logging
import sys
from typing import Any, Dict, List, Optional

from simrng import runner
from simrng.errors import SimRNGError
from simrng.log_cfg import LogConfig

MESSAGES = {
    "invalid_parameter": "invalid distribution parameter",
    "invalid_request": "invalid request",
    "generator_initialization": "unusable seed",
    "sampling_exhausted": "sampling gave up",
    "insufficient_data": "not enough data",
    "lookup_out_of_range": "no critical value available",
}


def _parse_value(text: str) -> Any:
    if "," in text:
        try:
            return [float(part) for part in text.split(",") if part.strip()]
        except ValueError:
            raise argparse.ArgumentTypeError(f"expected a comma-separated list of numbers, got '{text}'") from None
    try:
        return float(text)
    except ValueError:
        return text


def _parse_params(pairs: List[str]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"expected name=value, got '{pair}'")
        params[name.strip()] = _parse_value(value.strip())
    return params


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="simrng", description="Seeded variate generation and goodness-of-fit tests.")
    parser.add_argument("--log", action="store_true", help="print debug diagnostics to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    def common(p):
        p.add_argument("--seed", type=int, required=True)
        p.add_argument("--kind", required=True, help="distribution kind, e.g. uniform, normal, exponential")
        p.add_argument("--param", action="append", default=[], metavar="NAME=VALUE")
        p.add_argument("--count", type=int, required=True)
        p.add_argument("--generator", default="lcg", choices=["lcg", "lehmer"])

    def binned(p):
        p.add_argument("--bins", default="sturges", help="bin count or rule (sturges, sqrt, rice)")
        p.add_argument("--min-expected", type=float, default=5.0)

    p_sample = sub.add_parser("sample", help="print generated variates")
    common(p_sample)
    p_sample.add_argument("--page", type=int, default=None, help="print only this 1-based page of 30 values")

    p_table = sub.add_parser("table", help="print the frequency table")
    common(p_table)
    binned(p_table)

    p_chi = sub.add_parser("chi2", help="chi-square goodness-of-fit test")
    common(p_chi)
    binned(p_chi)
    p_chi.add_argument("--alpha", type=float, default=0.05)
    p_chi.add_argument(
        "--estimated", type=int, default=None, help="parameters estimated from the sample (default: per family)"
    )

    p_ks = sub.add_parser("ks", help="Kolmogorov-Smirnov goodness-of-fit test")
    common(p_ks)
    p_ks.add_argument("--alpha", type=float, default=0.05)
    return parser


def _bins(text: str):
    return int(text) if text.lstrip("-").isdigit() else text


def execute(args: argparse.Namespace) -> Any:
    """Run the parsed command and return a JSON-serialisable result."""
    distribution = {"kind": args.kind, "params": _parse_params(args.param)}
    drawn = runner.generate_sample(args.seed, distribution, args.count, args.generator)
    if args.command == "sample":
        return drawn.page(args.page) if args.page is not None else drawn.tolist()
    if args.command == "ks":
        return runner.run_ks_test(drawn, drawn.distribution, args.alpha).as_dict()
    table = runner.build_frequency_table(drawn, drawn.distribution, _bins(args.bins), args.min_expected)
    if args.command == "table":
        return [asdict(b) for b in table]
    return runner.run_chi_square_test(table, args.alpha, args.estimated).as_dict()


def main(argv: Optional[List[str]] = None) -> int:
    parser = _parser()
    try:
        args = parser.parse_args(argv)
        if args.log:
            LogConfig(enabled=True, console_level=logging.DEBUG, file_path=None)
        result = execute(args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    except SimRNGError as exc:
        print(f"error: {exc.code}: {MESSAGES.get(exc.code, 'failed')}: {exc}", file=sys.stderr)
        return 2
    json.dump(result, sys.stdout)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
