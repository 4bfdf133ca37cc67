"""Run orchestration services."""
