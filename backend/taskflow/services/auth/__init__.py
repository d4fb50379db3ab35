"""Authentication & session lifecycle: login, registration, rotation, revocation."""
