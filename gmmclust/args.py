"""Command-line options of the EM clustering program."""

from __future__ import annotations

import getopt
import re
import sys
from dataclasses import dataclass

_OPTSTRING = "BN:M:o:O:r:c:t:m:f:a:A:Sv:R:T:I:u:U:b:g:"
_INT = re.compile(r"\s*[+-]?\d+")
_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class UsageError(ValueError):
    """Raised when no data file is given; the message holds the usage text."""


@dataclass
class EMArgs:
    """Settings taken from the command line."""

    fname: str | None = None
    oname: str | None = None
    cname: str | None = None
    iname: str | None = None
    aname: str | None = None
    rname: str | None = None
    mname: str | None = None
    affname: str | None = None
    msteploopparam: str | None = None
    numaname: str | None = None
    numaparam: str | None = None
    seed: int = 0
    ncl: int = 1
    verbosity: int = 1
    init: str | None = None
    maxiter: int = 1000000
    burnin: int = 0
    regcoeff: float = 0.0
    runtime: float = 0.0
    eps: float = 1e-5
    athr: float = 1e5
    svd: bool = True
    benchmarkreducer: bool = False


def _to_int(text):
    match = _INT.match(text)
    return int(match.group()) if match else 0


def _to_float(text):
    match = _FLOAT.match(text)
    return float(match.group()) if match else 0.0


def usage():
    """Return the usage text."""
    return "\n".join([
        "Arguments: filename - name of the file in .bin format",
        "-o filename : writes components in a binary format to the file filename",
        "-O filename : writes classes in a binary format to the file filename",
        "-r seed : sets the seed of pseudo-random number generator",
        "-c components : selects the number of Gaussian mixture components",
        "-t init : selects the method of initialization of mixture, choices are simple,km,kmper,jain",
        "-m emiter : sets the maximal number of EM iterations",
        "-b burnin : sets the number of burn-in EM iterations (default is 0)",
        "-f eps : sets the Eps EM stopping threshold (default 1e-5)",
        "-a abort: set EM failure threshold (default is 1.0e5)",
        "-A algorithm: selects a version of EM algorithm",
        "-R reducer: selects a version of OpenMP reduction algorithm",
        "-M msteploop: selects a version of FastEM M-step outer loop",
        "-N msteploopparam: sets aparameter values for FastEM M-step outer loop",
        "-B benchmarks reduction algorithm (-m sets the number of iterations -N number of columns)",
        "-T fname outputs thread placement info to file fname",
        "-u alloc use NUMA allocator alloc",
        "-U allocparam use NUMA allocator parameter allocparam",
        "-g coeff use regularization coefficient for covariance matrices, default 0.0",
        "-S disables svd",
        "-v verbosity",
    ]) + "\n"


_STRING_OPTIONS = {
    "-u": "numaname",
    "-U": "numaparam",
    "-A": "aname",
    "-R": "rname",
    "-T": "affname",
    "-M": "mname",
    "-o": "oname",
    "-I": "iname",
    "-O": "cname",
    "-N": "msteploopparam",
    "-t": "init",
}


def parse_args(argv=None):
    """Parse the arguments (without the program name) into ``EMArgs``.

    Raises ``ValueError`` for bad options or values and ``UsageError``
    when no data file is named and ``-B`` is not given.
    """
    if argv is None:
        argv = sys.argv[1:]
    try:
        opts, rest = getopt.gnu_getopt(list(argv), _OPTSTRING)
    except getopt.GetoptError:
        raise ValueError("Invalid command line option") from None

    args = EMArgs()
    for opt, value in opts:
        if opt in _STRING_OPTIONS:
            setattr(args, _STRING_OPTIONS[opt], value)
        elif opt == "-B":
            args.benchmarkreducer = True
        elif opt == "-S":
            args.svd = False
        elif opt == "-r":
            args.seed = _to_int(value)
            if args.seed < 0:
                raise ValueError("invalid value of -r option")
        elif opt == "-b":
            args.burnin = _to_int(value)
            if args.burnin < 0:
                raise ValueError("invalid value of -b option")
        elif opt == "-c":
            args.ncl = _to_int(value)
            if args.ncl <= 0:
                raise ValueError("invalid value of -c option")
        elif opt == "-m":
            args.maxiter = _to_int(value)
            if args.maxiter < 0:
                raise ValueError("invalid value of -m option")
        elif opt == "-v":
            args.verbosity = _to_int(value)
            if args.verbosity < 0:
                raise ValueError("invalid value of -v option")
        elif opt == "-a":
            args.athr = _to_float(value)
            if args.athr < 1.0:
                raise ValueError("argument to -a must be greater then 1.0")
        elif opt == "-f":
            args.eps = _to_float(value)
            if args.eps <= 0.0:
                raise ValueError("argument to -f must be greater or than 0")
        elif opt == "-g":
            args.regcoeff = _to_float(value)
            if args.regcoeff < 0.0 or args.regcoeff > 1.0:
                raise ValueError("argument to -g must be small positive number")

    if rest:
        args.fname = rest[0]
    elif not args.benchmarkreducer:
        raise UsageError(usage())
    return args