"""
Core client logic - framework-agnostic.

Models, environment probing, content types, upload orchestration and
batch scheduling. Nothing here imports an HTTP library.
"""
