"""
Application Layer

Orchestrates domain objects and infrastructure ports into per-guild sessions.

Structure:
- services/: Playback loop, pool refiller, idle monitor, session, registry
- interfaces/: Port interfaces for infrastructure adapters
"""
