"""
Retrieval-support backend.

Durable background-job state machine, dispatcher, semantic query cache and
context assembly for a retrieval-augmented-generation service.
"""

__version__ = "0.1.0"
