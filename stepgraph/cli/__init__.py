"""Command line interface for stepgraph."""
