#!/usr/bin/env python3
"""
meshbridge
Converts glTF 2.0 manifests into a render-ready triangle mesh and back.
"""

__version__ = "1.0.0"
