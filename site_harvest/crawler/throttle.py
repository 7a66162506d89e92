# site_harvest/crawler/throttle.py
"""
Politeness delays between requests to the origin server.

The crawl loop asks a :class:`DelayPolicy` how long to wait after each fetch.
:class:`FixedDelay` is the default and ignores the outcome of the request.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True)
class ThrottleContext:
    """What the loop knows about the request that just finished."""

    url: str
    ok: bool
    fetched: int


@runtime_checkable
class DelayPolicy(Protocol):
    def wait_before_next(self, ctx: ThrottleContext) -> float: ...


@dataclass(slots=True)
class FixedDelay:
    seconds: float = 1.0

    def wait_before_next(self, ctx: ThrottleContext) -> float:
        return self.seconds


async def pause(policy: DelayPolicy, ctx: ThrottleContext) -> float:
    """Sleep for whatever *policy* asks and return the delay applied."""
    delay = max(0.0, float(policy.wait_before_next(ctx)))
    if delay > 0:
        await asyncio.sleep(delay)
    return delay


__all__ = ["ThrottleContext", "DelayPolicy", "FixedDelay", "pause"]
