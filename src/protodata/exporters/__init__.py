"""Data file exporter: one JSON or YAML document per enum, message and service."""

from .datafiles import Artifact, Diagnostic, GenerationResult, generate
from .encoders import JSONEncoder, YAMLEncoder, get_encoder

__all__ = ["Artifact", "Diagnostic", "GenerationResult", "JSONEncoder", "YAMLEncoder", "generate", "get_encoder"]
