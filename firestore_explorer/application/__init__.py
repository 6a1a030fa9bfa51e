"""Application layer: ports, DTOs and the bulk transfer services."""
