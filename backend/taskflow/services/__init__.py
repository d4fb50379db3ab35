"""Service layer: use-case orchestration over ports, repositories and the Unit of Work."""
