"""ModuleMap CLI: LLM-assisted module dependency maps for source trees."""

__version__ = "0.1.0"
