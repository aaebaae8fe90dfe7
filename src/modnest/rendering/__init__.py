"""Rendering of submodule manifests."""
from .manifest import ManifestSynthesizer, render_stanza

__all__ = ["ManifestSynthesizer", "render_stanza"]
