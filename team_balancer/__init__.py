"""Team Balancer - multi-algorithm optimizer for splitting players into balanced teams."""

__version__ = "0.1.0"
