"""
Registry - local records of what has been installed and deployed.

- address_book: per-network JSON registry of contract ids and wasm hashes
- artifacts:    logical wasm keys -> compiled contract bytes on disk
"""
