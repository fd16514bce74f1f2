"""Search backend layer — Connectors for managed search services.

Built-in backends:
  - cloudsearch: Amazon CloudSearch (2011-02-01 query dialect)

Implement ``SearchBackend`` to connect another managed service.
"""
