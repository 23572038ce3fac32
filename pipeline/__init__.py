"""Pipeline components.

This package contains the synthetic data generator, the database loaders,
embedding backfill, the psql script renderer and the result/manifest writers.
"""
