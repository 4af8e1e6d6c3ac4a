"""Infrastructure layer — note files, raw header splicing, bulk moves.

Pure parsing lives in :mod:`notectl.domain`; this layer handles the
bytes on disk. It must never import from services, commands, or output.
"""
