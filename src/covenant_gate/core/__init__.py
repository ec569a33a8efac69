"""Core configuration, logging and cryptographic primitives."""
