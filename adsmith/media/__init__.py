"""Scene rendering, local assembly, and publishing."""

from adsmith.media.assembly import MediaAssembler, parse_ratio, scratch_directory
from adsmith.media.pipeline import ScenePipeline

__all__ = ["MediaAssembler", "ScenePipeline", "parse_ratio", "scratch_directory"]
