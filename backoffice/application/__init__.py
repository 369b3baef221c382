"""Application layer: DTOs, interfaces (ports), services.

Depends only on domain and protocol definitions.
Infrastructure implements the interfaces (repositories, permission resolver, cache).
"""
