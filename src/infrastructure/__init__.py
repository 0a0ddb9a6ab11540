"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: LangChain chat models, SQLite, config.
Depends on domain/ and, for context retrieval, the application services.
"""
