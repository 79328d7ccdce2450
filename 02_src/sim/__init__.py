"""Scripted conversation driver."""

from .sim import ISim, Sim, build_scenarios

__all__ = ["ISim", "Sim", "build_scenarios"]
