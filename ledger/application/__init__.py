"""Application layer - Use cases and DTOs."""
