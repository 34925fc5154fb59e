"""Storage read layer.

This package reads bolt database files and rebuilds the MVCC keyspace
they hold. It powers key listing, revision snapshots, and hashing for
the SDK.
"""
