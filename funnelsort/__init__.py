"""
funnelsort
==========

Sorts the files of a folder into a fixed taxonomy of destination folders
using a three-stage funnel.

Features:
- Stage 1: ordered filename rules (no I/O)
- Stage 2: size and extension heuristics (stat only)
- Stage 3: a local LLM (Ollama) constrained to the taxonomy, loaded on
  demand and unloaded when idle
- Collision-safe moves with content-hash duplicate removal
- A JSON summary written into every destination folder

All processing occurs locally.
"""

__version__ = "0.1.0"
