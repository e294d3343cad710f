"""Counter store adapters.

The limiter core depends on the small interfaces in ``base`` only, so the
shared Redis store and the per-process in-memory store are interchangeable.
"""
