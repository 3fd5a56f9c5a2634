"""Task bodies and target definitions of the component-library pipeline."""

from buildspine.pipeline.targets import build_registry

__all__ = ["build_registry"]
