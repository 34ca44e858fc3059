"""Filesystem and subprocess adapters used by the resolver."""
