"""Database layer: engine, ORM models, schema bootstrap and repositories"""
