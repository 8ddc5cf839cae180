"""Changelog rendering module."""

from tidings.render.renderer import RenderContext, Renderer

__all__ = ["RenderContext", "Renderer"]
