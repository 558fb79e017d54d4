"""API DTOs

DTOs belong to the API layer: they validate request bodies, serialize responses
and convert to and from domain entities. The domain never imports them.
"""
