"""
Rendering backends for flow views
"""

from .renderer import PillowRenderer, PlaywrightRenderer, Renderer

__all__ = ['PillowRenderer', 'PlaywrightRenderer', 'Renderer']
