"""
Commands - CLI command implementations for orbitctl.

Each module corresponds to a top-level CLI command:
- install:      upload wasm artifacts and record their hashes
- deploy:       create contract instances from installed wasm
- bump:         extend the TTL of contract instances or code
- invoke:       call a function on a registered contract
- queue_commit: two-phase (time-locked) admin changes
- fund:         friendbot funding for test networks
- setup:        resumable Orbit deployment (init-orbit)
- inspect:      offline contract id derivation and address book display
- keygen:       create the operator key
"""
