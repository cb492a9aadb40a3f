"""Built-in platform registrations."""

from __future__ import annotations

from buzzpost.posters.base import PosterRegistry
from buzzpost.posters.threads import ThreadsPoster
from buzzpost.posters.x import XPoster


def default_registry() -> PosterRegistry:
    registry = PosterRegistry()
    registry.register("x", XPoster.from_options)
    registry.register("threads", ThreadsPoster.from_options)
    return registry
