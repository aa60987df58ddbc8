"""
ClaimTech Kernel - assessment workflow engine

A stage-driven pipeline for vehicle-insurance assessments with:
- One canonical stage per assessment, changed only through the transition service
- Linkage gating (inspection / appointment references) per stage
- Idempotent creation of dependent child records
- Collision-safe business numbers (REQ-/INS-/APT-/ASM-)
- Append-only audit log
"""

__version__ = "0.1.0"
