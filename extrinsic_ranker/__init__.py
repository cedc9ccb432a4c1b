"""Rank option strikes by extrinsic value efficiency from live Yahoo Finance chains."""

__version__ = "0.1.0"
