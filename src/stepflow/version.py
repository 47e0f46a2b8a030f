"""
Central version constant for stepflow.
"""

__version__ = "0.3.0"

# Version of the FlowModel JSON shape (independent of the package version)
MODEL_VERSION = "1.0.0"
