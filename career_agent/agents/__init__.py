"""Conversational agents: orchestrator, task handlers and the workflow driver."""
