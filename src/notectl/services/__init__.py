"""Service layer — remediation logic producing FixResult and FixSummary.

Services may import from domain, infrastructure, and output protocols.
They must never import from commands.
"""
