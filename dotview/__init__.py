"""
DotView - Directive template engine.

- templates: directive compiler, block/renderer registries, minifiers
- faults: structured fault taxonomy
- config: layered configuration (YAML/JSON, .env, environment)
"""

__version__ = "0.1.0"
