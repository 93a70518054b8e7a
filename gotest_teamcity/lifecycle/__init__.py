"""Test lifecycle reconstruction: clock, engine, and configuration."""

from gotest_teamcity.lifecycle.clock import Clock, FixedClock, SystemClock
from gotest_teamcity.lifecycle.config import ConverterConfig
from gotest_teamcity.lifecycle.engine import EventEngine, convert

__all__ = [
    "Clock",
    "ConverterConfig",
    "EventEngine",
    "FixedClock",
    "SystemClock",
    "convert",
]
