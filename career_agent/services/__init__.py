"""Domain services used by the agents and the API."""
