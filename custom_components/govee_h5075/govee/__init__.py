"""Govee H5075 advertisement sub-package.

This package is intentionally free of any Home Assistant dependencies so that
it can be unit-tested in isolation and reused by the command-line scanner.

Sub-modules
-----------
scanner – Advertisement classification and manufacturer-data adapters.
device  – Reading model, payload decoder, range validator and pipeline.
"""
